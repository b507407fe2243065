"""
Command-line entry point tests.
"""

import json
from datetime import date

import pytest

from valuta.main import build_parser, main, render_response
from valuta.models import Rate
from valuta.providers.base import ConfigurationError, ProviderResponse, SkippedItem


class TestRenderResponse:
    
    def test_unconfigured(self):
        assert render_response(None) == {"configured": False}
    
    def test_success_with_skipped(self):
        rate = Rate(date=date(2024, 1, 2), from_currency="USD", to_currency="EUR", rate=0.91)
        response = ProviderResponse.ok([rate], skipped=(SkippedItem("2024-01-01", "no data"),))
        
        payload = render_response(response)
        
        assert payload["success"] is True
        assert payload["data"][0]["date"] == "2024-01-02"
        assert payload["data"][0]["rate"] == 0.91
        assert payload["skipped"] == [{"key": "2024-01-01", "reason": "no data"}]
    
    def test_failure(self):
        error = ConfigurationError("Historical data requires API key", provider="exchange_rate_api")
        
        payload = render_response(ProviderResponse.fail(error))
        
        assert payload == {
            "success": False,
            "error": {
                "type": "CONFIG_ERROR",
                "provider": "exchange_rate_api",
                "message": "Historical data requires API key",
            },
        }


class TestCli:
    
    def test_rate_arguments(self):
        args = build_parser().parse_args(["rate", "USD", "EUR", "--date", "2024-01-05"])
        
        assert args.from_currency == "USD"
        assert args.date == date(2024, 1, 5)
    
    def test_command_is_required(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])
    
    def test_usage_command(self, capsys):
        exit_code = main(["usage"])
        
        output = json.loads(capsys.readouterr().out)
        assert exit_code == 0
        assert output["alpha_vantage"] == {"configured": False}
        assert output["exchange_rate_api"]["success"] is True
        assert output["logo_dev"]["data"]["plan"] == "unauthenticated"
