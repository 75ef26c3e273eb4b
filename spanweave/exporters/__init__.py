"""
spanweave.exporters - OpenTelemetry SpanExporter implementations.

This subpackage provides a SpanExporter that turns finished OpenTelemetry
spans into trace frames for the reconciliation pipeline.

Example:
    >>> from opentelemetry.sdk.trace import TracerProvider
    >>> from opentelemetry.sdk.trace.export import SimpleSpanProcessor
    >>> from spanweave.exporters import FrameSpanExporter
    >>>
    >>> exporter = FrameSpanExporter()
    >>> provider = TracerProvider()
    >>> provider.add_span_processor(SimpleSpanProcessor(exporter))
"""

from spanweave.exporters.frame_exporter import FRAME_DURATION_UNIT, FrameSpanExporter

__all__ = ["FrameSpanExporter", "FRAME_DURATION_UNIT"]
