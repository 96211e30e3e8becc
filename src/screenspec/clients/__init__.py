"""External collaborators."""

from .transport import HttpTransport, Transport, TransportError

__all__ = ["HttpTransport", "Transport", "TransportError"]
