"""Failures surfaced by a RecordStore."""


class StoreError(Exception):
    """Base class for store-level failures (as opposed to domain rule violations)."""


class StoreUnavailableError(StoreError):
    """The backing store could not be reached or failed mid-operation."""


class TransactionConflictError(StoreError):
    """A conditional update kept losing races and ran out of retries."""

    def __init__(self, key: str, attempts: int) -> None:
        self.key = key
        self.attempts = attempts
        super().__init__(f"transaction on {key} lost {attempts} consecutive races")
