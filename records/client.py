"""
Client side of the shared record: an edit buffer reconciled against the server.

``EditorStateMachine`` holds the local edit buffer and the version it was
read at. It never performs I/O itself: it hands out the arguments of the next
remote call and is told the result. ``FieldEditorSession`` drives it over a
transport, either in process (``LocalTransport``) or over HTTP
(``HttpTransport``).

A save that loses the version race (``apply`` returns False) discards the
buffer and reloads; a save that fails for any other reason keeps the buffer
so no typing is lost.

``FieldEditorSession`` is synchronous: each remote call blocks the caller
until it returns, so it only ever has one fetch outstanding. Callers that need
to stay responsive while a call is in flight (several overlapping fetches, a
UI event loop) drive ``EditorStateMachine`` directly, issuing calls with
``begin_fetch``/``begin_save`` and delivering results as they arrive.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Tuple, Union

import requests

from records.exceptions import InvalidTransition, RemoteError, ServiceError, TransportError
from records.snapshot import FIELD_NAMES, RecordSnapshot

logger = logging.getLogger(__name__)

CONFLICT_MESSAGE = (
    "Save failed. Another user has updated the fields since you loaded them. "
    "Your changes have been discarded and the fields now show the current values. "
    "Please try again."
)
SAVE_LABEL = "Save Changes"
SAVING_LABEL = "Saving..."


class EditorState(Enum):
    IDLE = "idle"
    LOADING = "loading"
    EDITING = "editing"
    SAVING = "saving"
    CONFLICT = "conflict"


class Notice(Enum):
    NONE = "none"
    CONFLICT = "conflict"
    ERROR = "error"


# (state, event) -> next state. Anything missing is an invalid transition.
TRANSITIONS: Dict[Tuple[EditorState, str], EditorState] = {
    (EditorState.IDLE, "fetch"): EditorState.LOADING,
    (EditorState.EDITING, "fetch"): EditorState.LOADING,
    (EditorState.CONFLICT, "fetch"): EditorState.LOADING,
    (EditorState.LOADING, "fetch"): EditorState.LOADING,
    (EditorState.LOADING, "fetch_succeeded"): EditorState.EDITING,
    (EditorState.LOADING, "fetch_failed"): EditorState.EDITING,
    (EditorState.LOADING, "fetch_failed_empty"): EditorState.IDLE,
    (EditorState.EDITING, "edit"): EditorState.EDITING,
    (EditorState.EDITING, "save"): EditorState.SAVING,
    (EditorState.SAVING, "applied"): EditorState.LOADING,
    (EditorState.SAVING, "conflict"): EditorState.CONFLICT,
    (EditorState.SAVING, "apply_failed"): EditorState.EDITING,
}


@dataclass(frozen=True)
class ApplyArgs:
    """Snapshot of the edit buffer submitted by one save."""

    field1: str
    field2: str
    field3: str
    field4: str
    expected_version: int

    def as_tuple(self) -> Tuple[str, str, str, str, int]:
        return (self.field1, self.field2, self.field3, self.field4, self.expected_version)


class EditorStateMachine:
    """Reconciliation state of one client."""

    def __init__(self):
        self.state = EditorState.IDLE
        self.history: List[EditorState] = [self.state]
        self.buffer: Optional[List[str]] = None
        self.version: Optional[int] = None
        self.notice = Notice.NONE
        self.error_message: Optional[str] = None
        self._latest_token = 0
        self._pending_save: Optional[ApplyArgs] = None

    def _transition(self, event: str) -> EditorState:
        try:
            next_state = TRANSITIONS[(self.state, event)]
        except KeyError:
            raise InvalidTransition(event, self.state) from None
        self.state = next_state
        self.history.append(next_state)
        return next_state

    @property
    def can_save(self) -> bool:
        return self.state is EditorState.EDITING

    @property
    def save_label(self) -> str:
        return SAVING_LABEL if self.state is EditorState.SAVING else SAVE_LABEL

    @property
    def notice_message(self) -> Optional[str]:
        if self.notice is Notice.CONFLICT:
            if self.error_message:
                return f"{CONFLICT_MESSAGE} {self.error_message}"
            return CONFLICT_MESSAGE
        if self.notice is Notice.ERROR:
            return self.error_message
        return None

    @property
    def latest_token(self) -> int:
        return self._latest_token

    def begin_fetch(self) -> int:
        """Issue a (re)fetch and return its token."""
        self._transition("fetch")
        self._latest_token += 1
        return self._latest_token

    def _is_stale(self, token: int) -> bool:
        if token != self._latest_token:
            logger.debug("Discarding fetch response %d, latest issued is %d", token, self._latest_token)
            return True
        return False

    def fetch_succeeded(self, token: int, record: RecordSnapshot) -> bool:
        """
        Deliver a fetched record.

        Returns:
            False if the response was stale and ignored
        """
        if self._is_stale(token):
            return False
        self._transition("fetch_succeeded")
        self.buffer = list(record.fields)
        self.version = record.version
        if self.notice is Notice.CONFLICT:
            self.error_message = None
        return True

    def fetch_failed(self, token: int, message: str) -> bool:
        """
        Deliver a failed fetch; the buffer, if any, is kept.

        A pending conflict notice stays in place with the load error added
        to it, so the user still learns that their edits were discarded.
        """
        if self._is_stale(token):
            return False
        self._transition("fetch_failed" if self.buffer is not None else "fetch_failed_empty")
        if self.notice is not Notice.CONFLICT:
            self.notice = Notice.ERROR
        self.error_message = f"Error loading fields: {message}"
        return True

    def edit(self, field: Union[int, str], value: str) -> None:
        """Change one buffered field, by position (0-3) or name."""
        if not isinstance(value, str):
            raise TypeError(f"Field values must be strings, got {type(value).__name__}")
        index = FIELD_NAMES.index(field) if isinstance(field, str) else field
        if not 0 <= index < len(FIELD_NAMES):
            raise IndexError(f"No field at position {index}")
        self._transition("edit")
        self.buffer[index] = value

    def begin_save(self) -> ApplyArgs:
        """Snapshot the buffer and version as the arguments of ``apply``."""
        self._transition("save")
        self._pending_save = ApplyArgs(*self.buffer, expected_version=self.version)
        return self._pending_save

    def apply_completed(self, success: bool) -> int:
        """
        Deliver the result of ``apply`` and return the token of the refetch it triggers.

        On success the submitted values and the next version become the
        baseline at once, so a failed refetch cannot leave a stale version
        behind. On a conflict the buffer is discarded and the conflict notice
        is kept until a later save succeeds.
        """
        self._transition("applied" if success else "conflict")
        submitted, self._pending_save = self._pending_save, None
        self.error_message = None

        if success:
            self.notice = Notice.NONE
            self.buffer = [submitted.field1, submitted.field2, submitted.field3, submitted.field4]
            self.version = submitted.expected_version + 1
        else:
            logger.info("Save rejected at version %d, reloading", submitted.expected_version)
            self.notice = Notice.CONFLICT
            self.buffer = None
            self.version = None
            self._transition("fetch")

        self._latest_token += 1
        return self._latest_token

    def apply_failed(self, message: str) -> None:
        """Deliver a failed ``apply``; the buffer is left exactly as it was."""
        self._transition("apply_failed")
        self.notice = Notice.ERROR
        self.error_message = f"Save failed: {message}"
        self._pending_save = None


class LocalTransport:
    """Calls the remote operations in process."""

    def fetch(self) -> RecordSnapshot:
        from records import protocol

        return protocol.fetch()

    def apply(self, field1: str, field2: str, field3: str, field4: str, expected_version: int) -> bool:
        from records import protocol

        return protocol.apply(field1, field2, field3, field4, expected_version)


class HttpTransport:
    """
    Calls the remote operations over the HTTP API.

    Args:
        base_url: Server root, e.g. ``http://localhost:8000``
        session: ``requests.Session`` to send through (a new one by default)
        timeout: Per-request timeout in seconds
    """

    RECORD_PATH = "/api/record/"
    APPLY_PATH = "/api/record/apply/"

    def __init__(self, base_url: str, session: Optional[requests.Session] = None, timeout: float = 5):
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout

    def _request(self, method: str, path: str, **kwargs) -> dict:
        url = f"{self.base_url}{path}"
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            logger.warning("Error calling %s %s: %s", method, url, e)
            raise TransportError(str(e)) from e

        if response.status_code == 503:
            try:
                detail = response.json().get("detail", ServiceError.MESSAGE)
            except ValueError:
                detail = ServiceError.MESSAGE
            raise ServiceError(detail)

        if response.status_code != 200:
            logger.warning("Unexpected response from %s %s: %s", method, url, response.status_code)
            raise TransportError(f"Unexpected status {response.status_code} from {url}")

        try:
            payload = response.json()
        except ValueError as e:
            raise TransportError(f"Malformed response from {url}") from e

        if not isinstance(payload, dict):
            raise TransportError(f"Malformed response from {url}")
        return payload

    def fetch(self) -> RecordSnapshot:
        payload = self._request("GET", self.RECORD_PATH)
        try:
            return RecordSnapshot(
                field1=str(payload["field1"]),
                field2=str(payload["field2"]),
                field3=str(payload["field3"]),
                field4=str(payload["field4"]),
                version=int(payload["version"]),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise TransportError("Malformed record in response") from e

    def apply(self, field1: str, field2: str, field3: str, field4: str, expected_version: int) -> bool:
        payload = self._request(
            "POST",
            self.APPLY_PATH,
            json={
                "field1": field1,
                "field2": field2,
                "field3": field3,
                "field4": field4,
                "expected_version": expected_version,
            },
        )
        success = payload.get("success")
        if not isinstance(success, bool):
            raise TransportError("Malformed apply result in response")
        return success


class FieldEditorSession:
    """Drives an ``EditorStateMachine`` against a transport, one call at a time."""

    def __init__(self, transport, machine: Optional[EditorStateMachine] = None):
        self.transport = transport
        self.machine = machine or EditorStateMachine()

    @property
    def state(self) -> EditorState:
        return self.machine.state

    @property
    def fields(self) -> Optional[Tuple[str, ...]]:
        if self.machine.buffer is None:
            return None
        return tuple(self.machine.buffer)

    @property
    def version(self) -> Optional[int]:
        return self.machine.version

    def load(self) -> EditorState:
        """Fetch the record into the edit buffer."""
        self._run_fetch(self.machine.begin_fetch())
        return self.machine.state

    def edit(self, field: Union[int, str], value: str) -> None:
        self.machine.edit(field, value)

    def save(self) -> EditorState:
        """Submit the buffer once and reconcile with the result."""
        args = self.machine.begin_save()
        try:
            success = self.transport.apply(*args.as_tuple())
        except RemoteError as e:
            logger.warning("Save at version %d failed: %s", args.expected_version, e)
            self.machine.apply_failed(str(e))
            return self.machine.state
        except Exception as e:
            logger.exception("Save at version %d raised unexpectedly", args.expected_version)
            self.machine.apply_failed(str(e) or type(e).__name__)
            raise

        self._run_fetch(self.machine.apply_completed(success))
        return self.machine.state

    def _run_fetch(self, token: int) -> None:
        try:
            record = self.transport.fetch()
        except RemoteError as e:
            logger.warning("Fetch failed: %s", e)
            self.machine.fetch_failed(token, str(e))
        else:
            self.machine.fetch_succeeded(token, record)
