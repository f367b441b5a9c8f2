class SyncError(Exception):
    pass


class ExplorerError(SyncError):
    """Block explorer unreachable or answered with something unusable.

    Never retried by the engine; the next trigger is the retry.
    """


class ExplorerConnectionError(ExplorerError):
    pass


class ExplorerHTTPError(ExplorerError):
    def __init__(self, message: str, status_code: int) -> None:
        super().__init__(message)
        self.status_code = status_code


class ExplorerRateLimitError(ExplorerError):
    pass


class ExplorerPayloadError(ExplorerError):
    """Response body or a record in it is missing expected fields."""


class UnsupportedChainError(SyncError):
    pass


class StateStoreError(SyncError):
    pass
