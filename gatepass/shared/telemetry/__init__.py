"""Logging setup, OpenTelemetry tracing and span helpers."""

from gatepass.shared.telemetry.logging import get_logger, setup_logging
from gatepass.shared.telemetry.telemetry import start_tracing, stop_tracing
from gatepass.shared.telemetry.tracing import add_span_attributes, traced

__all__ = [
    "add_span_attributes",
    "get_logger",
    "setup_logging",
    "start_tracing",
    "stop_tracing",
    "traced",
]
