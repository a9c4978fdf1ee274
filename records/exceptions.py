"""Error taxonomy for the shared record.

A version mismatch on update is not represented here: it is the normal
``False`` result of an update, not an exception.
"""


class FieldEditorError(Exception):
    """Base class for every error raised by this project."""


class StoreError(FieldEditorError):
    """Raised when the store fails while reading or writing the record."""


class StoreUnavailable(StoreError):
    """Raised when the store cannot be reached or its schema cannot be created."""


class StoreNotInitialized(StoreUnavailable):
    """Raised when the store is used before ``initialize()`` has completed."""


class RecordNotFound(StoreError):
    """Raised when the shared record is missing after initialization."""


class RemoteError(FieldEditorError):
    """Base class for errors seen by callers of the remote operations."""


class ServiceError(RemoteError):
    """Opaque error returned across the remote boundary."""

    MESSAGE = "service error"

    def __init__(self, message: str = MESSAGE):
        super().__init__(message)
        self.message = message


class TransportError(RemoteError):
    """Raised when a remote call cannot be sent, or its reply cannot be decoded."""


class InvalidTransition(FieldEditorError):
    """Raised when an editor event is not valid in the current state."""

    def __init__(self, event: str, state):
        super().__init__(f"Cannot handle '{event}' while {state.value}")
        self.event = event
        self.state = state
