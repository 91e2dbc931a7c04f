class LibraryError(Exception):
    """Base class for errors raised by the circulation services."""

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class NotFoundError(LibraryError):
    """A referenced book, member or loan does not exist."""


class RuleViolation(LibraryError):
    """A business rule rejected the request. The caller must change input or wait."""


class LoanInvariantError(LibraryError):
    """Stored circulation data contradicts itself, e.g. more copies on the shelf than owned."""
