# catalog_bot/conversation.py
# ------------------------------------------------------------
# Per-sender dialog state kept in memory between webhook calls
# - ConversationState: step marker + action + draft product fields
# - ConversationStore: lock-guarded map, per-sender dispatch locks, idle expiry
# Nothing here survives a restart.
# ------------------------------------------------------------
import logging
import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass, field, replace
from decimal import Decimal
from typing import Callable, Dict, Iterator, Optional

logger = logging.getLogger(__name__)

# step labels
IDLE = 0
UPLOAD_NAME = 1
UPLOAD_DESCRIPTION = 2
UPLOAD_PRICE = 3
UPLOAD_CATEGORY = 4
UPLOAD_PHONE = 5
UPLOAD_IMAGE = 6
EDIT_SELECT_ID = 10
EDIT_SELECT_FIELD = 11
EDIT_VALUE = 12
DELETE_SELECT_ID = 20
DELETE_CONFIRM = 21

# actions
UPLOAD = "upload"
EDIT = "edit"
DELETE = "delete"


@dataclass
class ConversationState:
    step: int = IDLE
    action: Optional[str] = None
    name: Optional[str] = None
    description: Optional[str] = None
    price: Optional[Decimal] = None
    category: Optional[str] = None
    whatsapp_number: Optional[str] = None
    product_id: Optional[int] = None
    field_to_edit: Optional[str] = None
    touched_at: float = field(default=0.0, compare=False, repr=False)

    def advance(self, step: int, **changes) -> "ConversationState":
        return replace(self, step=step, **changes)


class _SenderLock:
    __slots__ = ("lock", "users")

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.users = 0  # dispatches holding or waiting on lock


class ConversationStore:
    """
    Thread-safe sender -> ConversationState map.

    get/put/remove hold one internal lock for the map itself. hold() wraps a
    whole dispatch in a per-sender lock, so two rapid messages from the same
    sender are handled one after the other while other senders proceed in
    parallel. A sender lock is only dropped by sweep() once no dispatch holds
    or waits on it.

    States idle for longer than idle_timeout (seconds) read as absent; sweep()
    drops them for good.
    """

    def __init__(self, idle_timeout: Optional[float] = 30 * 60, clock: Callable[[], float] = time.monotonic):
        self._idle_timeout = idle_timeout
        self._clock = clock
        self._states: Dict[str, ConversationState] = {}
        self._sender_locks: Dict[str, _SenderLock] = {}
        self._lock = threading.Lock()

    def _expired(self, state: ConversationState, now: float) -> bool:
        return self._idle_timeout is not None and now - state.touched_at > self._idle_timeout

    def get(self, sender: str) -> Optional[ConversationState]:
        with self._lock:
            state = self._states.get(sender)
            if state is None:
                return None
            if self._expired(state, self._clock()):
                del self._states[sender]
                logger.info(f"Conversation for {sender} expired after inactivity")
                return None
            return replace(state)

    def put(self, sender: str, state: ConversationState) -> None:
        with self._lock:
            self._states[sender] = replace(state, touched_at=self._clock())

    def remove(self, sender: str) -> None:
        with self._lock:
            self._states.pop(sender, None)

    @contextmanager
    def hold(self, sender: str) -> Iterator[None]:
        """Run the with-block as the only dispatch for this sender."""
        with self._lock:
            entry = self._sender_locks.get(sender)
            if entry is None:
                entry = self._sender_locks[sender] = _SenderLock()
            entry.users += 1
        try:
            with entry.lock:
                yield
        finally:
            with self._lock:
                entry.users -= 1

    def sweep(self) -> int:
        """Drop expired states and unused sender locks. Returns how many states were dropped."""
        with self._lock:
            now = self._clock()
            expired = [s for s, st in self._states.items() if self._expired(st, now)]
            for sender in expired:
                del self._states[sender]
            # entries still counted are held or being waited on
            for sender in [s for s, entry in self._sender_locks.items() if not entry.users]:
                del self._sender_locks[sender]
        if expired:
            logger.info(f"Swept {len(expired)} idle conversation(s)")
        return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._states)
