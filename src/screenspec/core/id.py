"""ID Generation System.

ULID-based identifiers for document sessions and in-flight requests.
Prefixes make log lines readable (sess_*, req_*).
"""

from typing import NewType
from ulid import ULID

SessionID = NewType("SessionID", str)
"""Live document instance identifier"""

RequestID = NewType("RequestID", str)
"""In-flight network request identifier"""


class Prefix:
    """ID prefix constants."""

    SESSION = "sess"
    REQUEST = "req"


class Generator:
    """ULID generator."""

    def generate(self) -> str:
        """Generate a new ULID."""
        return str(ULID())

    def generate_with_prefix(self, prefix: str) -> str:
        """Generate ULID with type prefix."""
        return f"{prefix}_{self.generate()}"


_generator = Generator()


def new_session_id() -> SessionID:
    """Generate new session ID."""
    return SessionID(_generator.generate_with_prefix(Prefix.SESSION))


def new_request_id() -> RequestID:
    """Generate new request ID."""
    return RequestID(_generator.generate_with_prefix(Prefix.REQUEST))


def generate_raw() -> str:
    """Generate ULID without prefix (subscription tokens and other internal keys)."""
    return _generator.generate()

