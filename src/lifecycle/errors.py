"""
Lifecycle error taxonomy.

Internal state transitions never raise; only awaited external work (startup
tasks, the user shutdown callback) and registry lookups can fail.
"""


class LifecycleError(Exception):
    """Base class for lifecycle errors"""


class StartupFailedError(LifecycleError):
    """A startup task raised before the server could be marked ready"""

    def __init__(self, cause: BaseException):
        self.cause = cause
        super().__init__(f"Startup task failed: {type(cause).__name__}: {cause}")


class ShutdownCallbackError(LifecycleError):
    """The user shutdown callback raised; the sequence still completed"""

    def __init__(self, cause: BaseException):
        self.cause = cause
        super().__init__(f"Shutdown callback failed: {type(cause).__name__}: {cause}")


class NotInitializedError(LifecycleError):
    """No lifecycle server has been registered yet"""

    def __init__(self, what: str = "lifecycle server"):
        super().__init__(f"No default {what}: call create_lifecycle_server() first")
