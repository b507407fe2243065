"""
Response envelope and error taxonomy tests.
"""

import pytest

from valuta.models import UsageData
from valuta.providers.base import (
    ConfigurationError,
    DataAbsentError,
    PartialResult,
    ProviderError,
    ProviderResponse,
    SkippedItem,
    TransportError,
    VendorError,
    with_provider_response,
)


class TestProviderResponse:
    """Tests for ProviderResponse."""
    
    def test_ok_response(self):
        response = ProviderResponse.ok(42)
        
        assert response.success
        assert response.data == 42
        assert response.error is None
        assert response.skipped == ()
    
    def test_fail_response(self):
        error = VendorError("bad key", provider="alpha_vantage")
        response = ProviderResponse.fail(error, raw={"Error Message": "bad key"})
        
        assert not response.success
        assert response.data is None
        assert response.error is error
        assert response.raw == {"Error Message": "bad key"}
    
    def test_cannot_carry_data_and_error(self):
        with pytest.raises(ValueError):
            ProviderResponse(data=1, error=ProviderError("boom"))
    
    def test_unwrap(self):
        assert ProviderResponse.ok("x").unwrap() == "x"
        
        with pytest.raises(DataAbsentError):
            ProviderResponse.fail(DataAbsentError("missing")).unwrap()


class TestWithProviderResponse:
    """Tests for with_provider_response."""
    
    def test_normal_return_is_success(self):
        response = with_provider_response(lambda: [1, 2, 3], provider="p")
        
        assert response.success
        assert response.data == [1, 2, 3]
    
    @pytest.mark.parametrize("error_class", [
        TransportError, VendorError, DataAbsentError, ConfigurationError
    ])
    def test_classified_error_is_kept(self, error_class):
        def block():
            raise error_class("nope", provider="p")
        
        response = with_provider_response(block, provider="p")
        
        assert not response.success
        assert isinstance(response.error, error_class)
        assert response.error.provider == "p"
    
    def test_unclassified_error_is_wrapped(self):
        def block():
            raise KeyError("rates")
        
        response = with_provider_response(block, provider="exchange_rate_api")
        
        assert not response.success
        assert type(response.error) is ProviderError
        assert response.error.error_type == "UNKNOWN"
        assert response.error.provider == "exchange_rate_api"
        assert isinstance(response.error.__cause__, KeyError)
    
    def test_vendor_payload_is_exposed_as_raw(self):
        payload = {"success": False, "error": {"info": "invalid key"}}
        
        def block():
            raise VendorError("invalid key", provider="p", details={"response": payload})
        
        assert with_provider_response(block).raw == payload
    
    def test_partial_result_reports_skipped_items(self):
        def block():
            result = PartialResult(data=["2026-01-02"])
            result.skip("2026-01-01", "no data")
            return result
        
        response = with_provider_response(block)
        
        assert response.success
        assert response.data == ["2026-01-02"]
        assert response.skipped == (SkippedItem(key="2026-01-01", reason="no data"),)


class TestErrors:
    """Tests for error defaults."""
    
    def test_default_error_types(self):
        assert TransportError("x").error_type == "TRANSPORT"
        assert VendorError("x").error_type == "VENDOR_ERROR"
        assert DataAbsentError("x").error_type == "DATA_ABSENT"
        assert ConfigurationError("x").error_type == "CONFIG_ERROR"
    
    def test_explicit_error_type_wins(self):
        error = VendorError("HTTP error: 401", provider="p", error_type="HTTP_401")
        
        assert error.error_type == "HTTP_401"
        assert str(error) == "HTTP error: 401"
    
    def test_usage_data_infinite_limit(self):
        usage = UsageData(used=0, limit=float("inf"), utilization=0, plan="open")
        
        assert usage.unlimited
