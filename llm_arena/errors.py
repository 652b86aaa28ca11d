"""Exceptions shared by the competition and debate engines."""


class ArenaError(Exception):
    """Base class for arena failures."""


class ConfigurationError(ArenaError, ValueError):
    """Raised before any provider call when a run is misconfigured."""


class AllProvidersFailedError(ArenaError, RuntimeError):
    """Raised when no provider produced a candidate."""

    def __init__(self, attempted: int) -> None:
        self.attempted = attempted
        super().__init__(f"All providers failed ({attempted} attempted)")
