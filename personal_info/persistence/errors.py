"""Error types for the persistence layer."""


class ConcurrencyConflictError(RuntimeError):
    """Raised when a replace finds the row changed or removed since it was read.

    The store does not know which of the two happened; callers that care
    check existence themselves.
    """

    def __init__(self, record_id: int | None, expected_row_version: int | None = None):
        self.record_id = record_id
        self.expected_row_version = expected_row_version
        super().__init__(f"Person {record_id} was modified or removed concurrently (expected row_version={expected_row_version})")
