"""Debug endpoint configuration.

DebugConfig is a frozen dataclass — immutable after creation, validated
once, no string-key dict lookups.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any

from httpdebug.errors import ConfigurationError


class SensitivePolicy(Enum):
    """Default verdict for sensitive trace views when no admin is set."""

    ALWAYS = "always"
    NEVER = "never"


@dataclass(frozen=True, slots=True)
class DebugConfig:
    """Debug multiplexer configuration. Immutable after creation.

    All fields have conservative defaults. Override what you need::

        config = DebugConfig(request_timeout=5.0, trace_enabled=False)
    """

    # Routing
    prefix: str = "/debug"

    # Request handling; 0 disables the timeout
    request_timeout: float = 0.0

    # Built-in endpoint groups
    pprof_enabled: bool = True
    trace_enabled: bool = True

    # Admin tier used when no authenticator is supplied
    sensitive_default: SensitivePolicy = SensitivePolicy.NEVER

    # Upper bound for ?seconds= on sampling endpoints
    max_profile_seconds: int = 60

    # serve() only
    host: str = "127.0.0.1"
    port: int = 8080
    log_level: str = "info"

    def __post_init__(self) -> None:
        if not self.prefix.startswith("/") or self.prefix.endswith("/"):
            msg = f"prefix must start with '/' and not end with one, got {self.prefix!r}"
            raise ConfigurationError(msg)
        if self.request_timeout < 0:
            msg = f"request_timeout must be >= 0, got {self.request_timeout!r}"
            raise ConfigurationError(msg)
        if self.max_profile_seconds <= 0:
            msg = f"max_profile_seconds must be > 0, got {self.max_profile_seconds!r}"
            raise ConfigurationError(msg)

    def with_overrides(self, **changes: Any) -> DebugConfig:
        """Return a copy with *changes* applied (and re-validated)."""
        return replace(self, **changes)
