"""Exceptions raised by file system service implementations."""


class InjectedFaultError(RuntimeError):
    """Raised by FaultInjectingFileSystemService for a deliberately injected failure.

    Path operations let this error propagate unwrapped instead of converting
    it to IOOperationError, so tests can assert on the exact fault they
    injected.
    """

    def __init__(self, operation: str, path: str, message: str = "injected fault"):
        super().__init__(f"{message} ({operation} {path})")
        self.operation = operation
        self.path = path
