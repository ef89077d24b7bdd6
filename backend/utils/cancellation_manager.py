# status: complete

import threading
import time
import uuid
from typing import Callable, Dict, List, Optional

from utils.logger import get_logger

logger = get_logger(__name__)


class RequestAbortedError(Exception):
    """Base class for a request stopped by its cancellation token."""

    def __init__(self, message: str, request_id: Optional[str] = None):
        super().__init__(message)
        self.request_id = request_id


class RequestCancelledError(RequestAbortedError):
    """The request was cancelled by a caller."""


class RequestTimeoutError(RequestAbortedError):
    """The request outlived its deadline."""


class RequestCancellation:
    """Cancellation signal plus optional deadline for one agent request.

    Checked by the agent loop before every model call and by the action
    executor before every primitive step.
    """

    def __init__(self, request_id: Optional[str] = None, timeout: Optional[float] = None,
                 clock: Callable[[], float] = time.monotonic):
        self.request_id = request_id or uuid.uuid4().hex
        self._clock = clock
        self._event = threading.Event()
        self.timeout = timeout if timeout and timeout > 0 else None
        self.deadline = clock() + self.timeout if self.timeout else None

    def cancel(self):
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def expired(self) -> bool:
        return self.deadline is not None and self._clock() >= self.deadline

    def check(self):
        """Raise if the request was cancelled or its deadline passed."""
        if self._event.is_set():
            raise RequestCancelledError(f"Request {self.request_id} was cancelled", self.request_id)
        if self.expired():
            raise RequestTimeoutError(
                f"Request {self.request_id} exceeded its {self.timeout:g}s deadline", self.request_id
            )


class CancellationManager:
    """Tracks in-flight agent requests so they can be cancelled by id."""

    def __init__(self):
        self._active: Dict[str, RequestCancellation] = {}
        self._lock = threading.Lock()

    def create(self, request_id: Optional[str] = None, timeout: Optional[float] = None) -> RequestCancellation:
        """Register a new token; an existing id is replaced."""
        token = RequestCancellation(request_id=request_id, timeout=timeout)
        with self._lock:
            if token.request_id in self._active:
                logger.warning(f"[CANCEL] Request id {token.request_id} reused, replacing previous token")
            self._active[token.request_id] = token
        logger.debug(f"[CANCEL] Registered request {token.request_id} (timeout={token.timeout})")
        return token

    def cancel(self, request_id: str) -> bool:
        """Signal cancellation; False when the request is unknown or finished."""
        with self._lock:
            token = self._active.get(request_id)
        if token is None:
            return False
        token.cancel()
        logger.info(f"[CANCEL] Request {request_id} marked for cancellation")
        return True

    def release(self, request_id: str, token: Optional[RequestCancellation] = None):
        """Stop tracking a finished request.

        With a token, the entry is only dropped while it still belongs to that
        token, so a finished request never unregisters a newer one that reused
        its id.
        """
        with self._lock:
            current = self._active.get(request_id)
            if current is None or (token is not None and current is not token):
                return
            del self._active[request_id]
        logger.debug(f"[CANCEL] Released request {request_id}")

    def active_requests(self) -> List[str]:
        with self._lock:
            return sorted(self._active.keys())
