"""Exception classes for ctgen."""


class CtGenError(Exception):
    """Base exception for all ctgen errors."""

    pass


class InitError(CtGenError):
    """Raised when persisted state (config dir, profile registry) cannot be created or read."""

    pass


class ValidationError(CtGenError):
    """Raised on bad input: missing directive, missing path, blank required answer, unknown table or profile."""

    pass


class DatabaseError(CtGenError):
    """Raised when connecting, reflecting or querying the database fails."""

    pass


class CtGenRuntimeError(CtGenError):
    """Raised for template rendering failures, I/O failures during generation and invalid task state."""

    pass
