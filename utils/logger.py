"""Logfire setup for the application."""

import logfire

SERVICE_NAME = "videotube-api"


def configure_logging(token: str | None = None) -> None:
    """Configure logfire. Spans are only shipped when a write token is present."""
    logfire.configure(
        token=token,
        service_name=SERVICE_NAME,
        send_to_logfire="if-token-present",
    )

    if token:
        instrument_libraries()


def instrument_libraries():
    """Instrument the HTTP client and the MongoDB driver for tracing."""
    logfire.instrument_httpx()
    logfire.instrument_pymongo()
