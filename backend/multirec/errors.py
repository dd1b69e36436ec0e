"""Exception types for the recommendation engine

Every error the core raises derives from MultirecError, which carries the
HTTP status the API layer renders it with.
"""

from typing import Any, Dict, Optional


class MultirecError(Exception):
    """Base exception for recommendation engine errors"""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.details = details or {}


class InvalidArgument(MultirecError):
    """Malformed input: non-positive user id, empty model list, missing event_type"""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status_code=400, details=details)


class UnsupportedModel(MultirecError):
    """A model name that no scoring strategy is registered for"""

    def __init__(self, model_name: str, supported: Optional[list] = None):
        supported = supported or []
        message = f"Unknown model '{model_name}'"
        if supported:
            message += f" ({'|'.join(supported)} expected)"
        super().__init__(
            message,
            status_code=400,
            details={"model": model_name, "supported": supported},
        )
        self.model_name = model_name


class NoActiveModels(MultirecError):
    """Raised when a fresh assignment is needed but every model is inactive"""

    def __init__(self):
        super().__init__("No active recommendation models found", status_code=409)


class BackingStoreUnavailable(MultirecError):
    """A store call failed because the backend is unreachable or timed out"""

    def __init__(self, store: str, error: Optional[BaseException] = None):
        message = f"{store} store unavailable"
        if error is not None:
            message += f": {error}"
        super().__init__(
            message,
            status_code=503,
            details={
                "store": store,
                "error_type": type(error).__name__ if error is not None else None,
            },
        )
        self.store = store


class EventNotPersisted(BackingStoreUnavailable):
    """The event store rejected a write; the event was buffered in memory instead"""

    def __init__(self, event, error: Optional[BaseException] = None):
        super().__init__("event", error)
        self.message = "Event buffered in memory, not durable"
        self.event = event
