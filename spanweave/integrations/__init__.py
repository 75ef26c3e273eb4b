"""
spanweave.integrations - In-process capture of OpenTelemetry spans and logs.

Example:
    >>> from spanweave.integrations import setup_capture, shutdown_capture
    >>> session = setup_capture(service_name="my-service")
    >>> tracer = session.get_tracer(__name__)
"""

from spanweave.integrations.logging_handler import LogFrameHandler
from spanweave.integrations.setup import CaptureSession, setup_capture, shutdown_capture

__all__ = [
    "CaptureSession",
    "LogFrameHandler",
    "setup_capture",
    "shutdown_capture",
]
