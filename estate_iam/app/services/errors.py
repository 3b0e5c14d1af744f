"""
Infrastructure failures surfaced to the application layer.

Store adapters translate their driver exceptions into these once, so use
cases and the API layer never inspect driver-specific errors.
"""


class StoreUnavailableError(Exception):
    """A shared store could not be reached or timed out; the request may be retried"""

    retryable = True

    def __init__(self, store: str, operation: str, detail: str = ""):
        self.store = store
        self.operation = operation
        self.detail = detail
        super().__init__(f"{store} unavailable during {operation}")
