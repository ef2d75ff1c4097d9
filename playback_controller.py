"""State machine that keeps the display's player in step with the shared queue.

Timers, player callbacks and key presses never touch controller state
directly. They post events, and a single loop thread applies them one at a
time, so a trigger's mutation always finishes before its follow-up poll.
"""

import enum
import logging
import queue
import threading
import time
import webbrowser
from dataclasses import dataclass
from typing import Callable, List, Optional

from data_models import QueueEntry
from errors import KaraokeError, NotFoundError

logger = logging.getLogger(__name__)

# Player error codes, as reported by the YouTube IFrame API
INVALID_PARAMETER = 2
HTML5_ERROR = 5
NOT_FOUND = 100
EMBEDDING_NOT_ALLOWED = 101
EMBEDDING_DISABLED = 150
EMBEDDING_DISABLED_CODES = frozenset({EMBEDDING_NOT_ALLOWED, EMBEDDING_DISABLED})


class PlaybackState(enum.Enum):
    LOADING = "loading"
    IDLE_EMPTY = "idle_empty"
    PLAYING = "playing"
    ERROR_FALLBACK = "error_fallback"


class PlayerErrorKind(enum.Enum):
    EMBEDDING_DISABLED = "embedding_disabled"
    OTHER = "other"


def classify_player_error(code) -> PlayerErrorKind:
    if code in EMBEDDING_DISABLED_CODES:
        return PlayerErrorKind.EMBEDDING_DISABLED
    return PlayerErrorKind.OTHER


# --- Events ---
@dataclass(frozen=True)
class PollTick:
    pass


@dataclass(frozen=True)
class IdleCheck:
    pass


@dataclass(frozen=True)
class PlayerEnded:
    media_id: str


@dataclass(frozen=True)
class PlayerFailed:
    code: int
    media_id: str


@dataclass(frozen=True)
class ManualAdvance:
    pass


@dataclass(frozen=True)
class RequestDelete:
    entry_id: str


@dataclass(frozen=True)
class ConfirmDelete:
    entry_id: str


@dataclass(frozen=True)
class CancelDelete:
    pass


@dataclass(frozen=True)
class OpenExternal:
    pass


class PlaybackController:
    def __init__(
        self,
        client,
        player,
        idle_timeout: float = 180.0,
        clock: Callable[[], float] = time.monotonic,
        open_url: Callable[[str], object] = webbrowser.open,
        on_change: Optional[Callable[["PlaybackController"], None]] = None,
    ):
        self.client = client
        self.player = player
        self.idle_timeout = idle_timeout
        self.clock = clock
        self.open_url = open_url
        self.on_change = on_change

        self.state = PlaybackState.LOADING
        self.current: Optional[QueueEntry] = None
        self.queue: List[QueueEntry] = []
        self.queue_length: Optional[int] = None
        self.up_next = 0
        self.now_loaded: Optional[str] = None  # media id handed to the player
        self.loaded_entry_id: Optional[str] = None
        self.error_kind: Optional[PlayerErrorKind] = None
        self.pending_delete_id: Optional[str] = None
        self.last_activity = clock()

        self._events: "queue.Queue" = queue.Queue()
        self._stop = threading.Event()
        self._handlers = {
            PollTick: self._on_poll,
            IdleCheck: self._on_idle_check,
            PlayerEnded: self._on_ended,
            PlayerFailed: self._on_player_failed,
            ManualAdvance: self._on_manual_advance,
            RequestDelete: self._on_request_delete,
            ConfirmDelete: self._on_confirm_delete,
            CancelDelete: self._on_cancel_delete,
            OpenExternal: self._on_open_external,
        }

    # --- Event plumbing ---
    def post(self, event) -> None:
        """Thread-safe; may be called from timers, player threads or the UI."""
        self._events.put(event)

    def dispatch(self, event) -> None:
        handler = self._handlers.get(type(event))
        if handler is None:
            raise TypeError(f"Unknown controller event: {event!r}")
        handler(event)
        if self.on_change:
            self.on_change(self)

    def process_pending(self) -> int:
        """Handle every queued event on the calling thread. Returns how many ran."""
        handled = 0
        while True:
            try:
                event = self._events.get_nowait()
            except queue.Empty:
                return handled
            self.dispatch(event)
            handled += 1

    def run(self, poll_timeout: float = 0.5) -> None:
        """Event loop; blocks until stop() is called."""
        logger.info("Playback controller started")
        while not self._stop.is_set():
            try:
                event = self._events.get(timeout=poll_timeout)
            except queue.Empty:
                continue
            try:
                self.dispatch(event)
            except Exception:
                logger.exception(f"Error handling {event!r}")
        logger.info("Playback controller stopped")

    def stop(self) -> None:
        self._stop.set()

    # --- Handlers ---
    def _touch(self) -> None:
        self.last_activity = self.clock()

    def _on_poll(self, event=None) -> None:
        try:
            snapshot = self.client.current_snapshot()
        except KaraokeError as e:
            logger.warning(f"Poll failed, retrying next tick: {e}")
            return

        current = snapshot.current
        previous_length = self.queue_length

        if current is not None and current.id != self.loaded_entry_id:
            logger.info(f"Loading '{current.title}' ({current.media_id}) for {current.submitter_name}")
            self.player.load(current.media_id)
            self.now_loaded = current.media_id
            self.loaded_entry_id = current.id
            self.error_kind = None
            self.state = PlaybackState.PLAYING
            self._touch()
        elif current is None:
            if self.loaded_entry_id is not None:
                logger.info("Queue is empty, stopping player")
                self.player.stop()
                self.now_loaded = None
                self.loaded_entry_id = None
                self.error_kind = None
                self._touch()
            self.state = PlaybackState.IDLE_EMPTY

        if previous_length is not None and snapshot.queue_length > previous_length:
            self._touch()

        self.current = current
        self.queue = list(snapshot.queue)
        self.queue_length = snapshot.queue_length
        self.up_next = snapshot.up_next
        if self.pending_delete_id and all(entry.id != self.pending_delete_id for entry in self.queue):
            self.pending_delete_id = None

    def _advance(self) -> None:
        try:
            removed = self.client.advance()
            logger.info(f"Finished '{removed.title}'")
        except NotFoundError:
            logger.info("Queue was already empty")
        except KaraokeError as e:
            logger.error(f"Could not advance the queue: {e}")
        self._on_poll()

    def _is_stale(self, event) -> bool:
        if event.media_id != self.now_loaded:
            logger.info(f"Ignoring player event for {event.media_id}, now loaded: {self.now_loaded}")
            return True
        return False

    def _on_ended(self, event: PlayerEnded) -> None:
        if self._is_stale(event):
            return
        self._advance()

    def _on_manual_advance(self, event) -> None:
        if self.current is None:
            logger.debug("Nothing to skip")
            return
        self._advance()

    def _on_player_failed(self, event: PlayerFailed) -> None:
        if self.current is None or self._is_stale(event):
            return
        self.error_kind = classify_player_error(event.code)
        self.state = PlaybackState.ERROR_FALLBACK
        logger.warning(f"Player error {event.code} ({self.error_kind.value}) on '{self.current.title}'")

    def _on_open_external(self, event) -> None:
        if self.current is not None:
            self.open_url(self.current.source_url)

    def _on_idle_check(self, event) -> None:
        if self.state is PlaybackState.LOADING or self.current is not None or self.queue_length:
            return
        if self.clock() - self.last_activity < self.idle_timeout:
            return

        try:
            entry = self.client.auto_fill()
            logger.info(f"Idle for {self.idle_timeout:.0f}s, Auto-DJ added '{entry.title}'")
        except KaraokeError as e:
            logger.error(f"Auto-fill failed: {e}")
        self._touch()

    def _on_request_delete(self, event: RequestDelete) -> None:
        if self.current is not None and event.entry_id == self.current.id:
            logger.info("Refusing to delete the entry that is playing; skip it instead")
            return
        if all(entry.id != event.entry_id for entry in self.queue):
            logger.debug(f"Delete requested for unknown entry {event.entry_id}")
            return
        self.pending_delete_id = event.entry_id

    def _on_confirm_delete(self, event: ConfirmDelete) -> None:
        if self.pending_delete_id is None or event.entry_id != self.pending_delete_id:
            return
        self.pending_delete_id = None
        try:
            self.client.delete_entry(event.entry_id)
            logger.info(f"Deleted queue entry {event.entry_id}")
        except NotFoundError:
            logger.info(f"Entry {event.entry_id} was already gone")
        except KaraokeError as e:
            logger.error(f"Could not delete entry {event.entry_id}: {e}")
        self._on_poll()

    def _on_cancel_delete(self, event) -> None:
        self.pending_delete_id = None
