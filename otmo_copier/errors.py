"""Exception types raised by the copy pipeline."""


class CopierError(Exception):
    """Base exception for the copier."""


class ValidationError(CopierError):
    """Raw event is malformed and cannot be normalized.

    Events failing validation are dropped before the idempotency gate and
    never produce a processed-event record.
    """

    def __init__(self, message: str, raw: dict | None = None):
        super().__init__(message)
        self.raw = raw


class DuplicateEventError(CopierError):
    """A processed-event record with the same idempotency key already exists."""

    def __init__(self, idempotency_key: str):
        super().__init__(f"Event already recorded: {idempotency_key}")
        self.idempotency_key = idempotency_key
