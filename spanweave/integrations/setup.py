"""
In-process capture of spans and logs for reconciliation.

This module wires a FrameSpanExporter into a TracerProvider and a
LogFrameHandler into the logging tree, so that an instrumented block of
code can be reconciled without any external trace or log backend.

Example:
    >>> from spanweave.integrations import setup_capture, shutdown_capture
    >>> from spanweave import reconcile
    >>>
    >>> session = setup_capture(service_name="checkout")
    >>> tracer = session.get_tracer(__name__)
    >>> with tracer.start_as_current_span("place-order"):
    ...     logging.getLogger("checkout").info("order accepted")
    >>> result = reconcile(*session.frames(), options=session.options())
    >>> shutdown_capture(session)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

from opentelemetry import trace
from opentelemetry.sdk.resources import Resource, SERVICE_NAME
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor

from spanweave.config import ReconcileOptions
from spanweave.core.frames import DataFrame
from spanweave.exporters.frame_exporter import FRAME_DURATION_UNIT, FrameSpanExporter
from spanweave.integrations.logging_handler import LogFrameHandler

logger = logging.getLogger(__name__)


@dataclass
class CaptureSession:
    """Objects created by setup_capture.

    Attributes:
        provider: TracerProvider feeding the exporter
        exporter: Collector of finished spans
        handler: Collector of log records
        logger_name: Logger the handler is attached to ("" for root)
        previous_level: Level of that logger before setup, restored on shutdown
    """
    provider: TracerProvider
    exporter: FrameSpanExporter
    handler: LogFrameHandler
    logger_name: str = ""
    previous_level: int = logging.NOTSET

    def get_tracer(self, name: str, version: Optional[str] = None) -> trace.Tracer:
        """Get a tracer bound to this session's provider."""
        return self.provider.get_tracer(name, version)

    def frames(self, trace_id: Optional[str] = None) -> Tuple[List[DataFrame], List[DataFrame]]:
        """Return ([trace frame], [log frame]) for the captured data."""
        return [self.exporter.to_frame(trace_id)], [self.handler.to_frame()]

    def options(self) -> ReconcileOptions:
        """Options matching the frames produced by this session."""
        return ReconcileOptions(duration_unit=FRAME_DURATION_UNIT)


def setup_capture(
    service_name: str,
    logger_name: Optional[str] = None,
    level: int = logging.INFO,
    set_global_provider: bool = False,
) -> CaptureSession:
    """Start capturing spans and logs in process.

    Args:
        service_name: Service name recorded on spans and log labels
        logger_name: Logger to attach the handler to (root logger if None)
        level: Minimum level of captured log records
        set_global_provider: Also install the provider as the global one

    Returns:
        The CaptureSession holding provider, exporter and handler
    """
    resource = Resource.create({SERVICE_NAME: service_name})
    provider = TracerProvider(resource=resource)

    exporter = FrameSpanExporter()
    provider.add_span_processor(SimpleSpanProcessor(exporter))

    if set_global_provider:
        trace.set_tracer_provider(provider)

    handler = LogFrameHandler(level=level, service_name=service_name)
    target = logging.getLogger(logger_name)
    previous_level = target.level
    target.addHandler(handler)
    if target.level == logging.NOTSET or target.level > level:
        target.setLevel(level)

    logger.info("Capture configured: service=%s, logger=%s", service_name, logger_name or "root")

    return CaptureSession(
        provider=provider,
        exporter=exporter,
        handler=handler,
        logger_name=logger_name or "",
        previous_level=previous_level,
    )


def shutdown_capture(session: CaptureSession) -> None:
    """Detach the log handler and shut the provider down.

    Captured frames stay available on the session after shutdown.
    """
    target = logging.getLogger(session.logger_name or None)
    target.removeHandler(session.handler)
    target.setLevel(session.previous_level)
    session.provider.shutdown()
    logger.info("Capture shutdown complete")
