"""
VALUTA command-line entry point

Usage:
    valuta health
    valuta usage
    valuta rate USD EUR --date 2026-01-15
    valuta prices AAPL --start-date 2026-01-01 --end-date 2026-01-15
    valuta logo --symbol AAPL
"""

import argparse
import json
import logging
import sys
from datetime import date
from typing import Any

from valuta import __version__
from valuta.config import get_settings
from valuta.models import Concept
from valuta.providers import ProviderRegistry, ProviderResponse, build_registry

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stderr)]
    )


def _jsonable(value: Any) -> Any:
    if hasattr(value, "model_dump"):
        return value.model_dump(mode="json")
    if isinstance(value, list):
        return [_jsonable(v) for v in value]
    if isinstance(value, dict):
        return {str(k): _jsonable(v) for k, v in value.items()}
    return value


def render_response(response: ProviderResponse | None) -> dict[str, Any]:
    if response is None:
        return {"configured": False}
    if response.success:
        payload: dict[str, Any] = {"success": True, "data": _jsonable(response.data)}
        if response.skipped:
            payload["skipped"] = [
                {"key": item.key, "reason": item.reason} for item in response.skipped
            ]
        return payload
    return {
        "success": False,
        "error": {
            "type": response.error.error_type,
            "provider": response.error.provider,
            "message": response.error.message,
        },
    }


def _print(payload: Any) -> None:
    print(json.dumps(payload, indent=2, default=str))


def cmd_health(registry: ProviderRegistry, args: argparse.Namespace) -> int:
    results = registry.health_check_all()
    _print(results)
    return 0 if all(results.values()) else 1


def cmd_usage(registry: ProviderRegistry, args: argparse.Namespace) -> int:
    _print({pid: render_response(r) for pid, r in registry.usage_report().items()})
    return 0


def cmd_rate(registry: ProviderRegistry, args: argparse.Namespace) -> int:
    resolver = registry.fallback(Concept.EXCHANGE_RATES)
    if args.start_date:
        response = resolver.call(
            "fetch_exchange_rates",
            args.from_currency,
            args.to_currency,
            args.start_date,
            args.end_date or date.today(),
        )
    else:
        response = resolver.call(
            "fetch_exchange_rate",
            args.from_currency,
            args.to_currency,
            args.date or date.today(),
        )
    _print(render_response(response))
    return 0 if response.success else 1


def cmd_prices(registry: ProviderRegistry, args: argparse.Namespace) -> int:
    response = registry.fallback(Concept.SECURITIES).call(
        "fetch_security_prices",
        args.symbol,
        start_date=args.start_date,
        end_date=args.end_date or date.today(),
        exchange_operating_mic=args.mic,
    )
    _print(render_response(response))
    return 0 if response.success else 1


def cmd_logo(registry: ProviderRegistry, args: argparse.Namespace) -> int:
    response = registry.fallback(Concept.LOGOS).call(
        "fetch_logo_url",
        company_name=args.company,
        domain=args.domain,
        symbol=args.symbol,
    )
    _print(render_response(response))
    return 0 if response.success else 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="valuta",
        description="Fetch exchange rates, prices and logos with provider fallback"
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--log-level", default=None, help="Override LOG_LEVEL")
    sub = parser.add_subparsers(dest="command", required=True)
    
    health = sub.add_parser("health", help="Probe every configured provider")
    health.set_defaults(handler=cmd_health)
    
    usage = sub.add_parser("usage", help="Show quota usage per provider")
    usage.set_defaults(handler=cmd_usage)
    
    rate = sub.add_parser("rate", help="Exchange rate for a date or range")
    rate.add_argument("from_currency")
    rate.add_argument("to_currency")
    rate.add_argument("--date", type=date.fromisoformat)
    rate.add_argument("--start-date", type=date.fromisoformat)
    rate.add_argument("--end-date", type=date.fromisoformat)
    rate.set_defaults(handler=cmd_rate)
    
    prices = sub.add_parser("prices", help="Daily closing prices for a security")
    prices.add_argument("symbol")
    prices.add_argument("--start-date", type=date.fromisoformat, required=True)
    prices.add_argument("--end-date", type=date.fromisoformat)
    prices.add_argument("--mic", default=None, help="Exchange operating MIC")
    prices.set_defaults(handler=cmd_prices)
    
    logo = sub.add_parser("logo", help="Logo URL for a company")
    logo.add_argument("--domain")
    logo.add_argument("--company")
    logo.add_argument("--symbol")
    logo.set_defaults(handler=cmd_logo)
    
    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)
    settings = get_settings()
    configure_logging(args.log_level or settings.log_level)
    
    with build_registry(settings=settings) as registry:
        return args.handler(registry, args)


if __name__ == "__main__":
    sys.exit(main())
