class MonitorError(Exception):
    """Base class for errors the CLI reports to the user."""


class SessionNotFoundError(MonitorError):
    """Raised when a session reference resolves to nothing."""

    def __init__(self, message: str, sessions_dir=None):
        super().__init__(message)
        self.sessions_dir = sessions_dir


class AmbiguousSessionError(MonitorError):
    """Raised when a session prefix matches more than one session."""

    def __init__(self, prefix: str, candidates: list[str]):
        self.prefix = prefix
        self.candidates = candidates
        super().__init__(
            f'Ambiguous session prefix "{prefix}". Matches: {", ".join(candidates)}'
        )
