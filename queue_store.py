import json
import logging
import os
import tempfile
import threading
from contextlib import suppress
from typing import Callable, List, Optional

from data_models import QueueEntry
from errors import InvalidInputError, MetadataLookupFailure, StorageIOError
from utils import extract_media_id, lookup_title

logger = logging.getLogger(__name__)


class QueueStore:
    """Ordered queue of song requests kept in a line-delimited JSON file.

    Every mutation rereads the whole file, applies the change and rewrites it.
    The lock serialises those cycles inside this process.
    """

    def __init__(
        self,
        path: str,
        title_lookup: Optional[Callable[[str, float], str]] = lookup_title,
        metadata_timeout: float = 5.0,
    ):
        self.path = path
        self.title_lookup = title_lookup
        self.metadata_timeout = metadata_timeout
        self._lock = threading.RLock()

    # --- Reads ---
    def list_all(self) -> List[QueueEntry]:
        with self._lock:
            return self._read()

    def peek_current(self) -> Optional[QueueEntry]:
        entries = self.list_all()
        return entries[0] if entries else None

    def count(self) -> int:
        return len(self.list_all())

    # --- Mutations ---
    def append(self, source_url: str, submitter_name: str, title: Optional[str] = None) -> QueueEntry:
        media_id = extract_media_id(source_url)
        if not media_id:
            raise InvalidInputError("Invalid YouTube URL")
        if not isinstance(submitter_name, str) or not submitter_name.strip():
            raise InvalidInputError("submitterName cannot be empty")

        # Resolved before taking the lock so a slow lookup never stalls readers.
        if not title:
            title = self._resolve_title(source_url, media_id)

        entry = QueueEntry.create(source_url.strip(), media_id, submitter_name.strip(), title)
        with self._lock:
            entries = self._read()
            entries.append(entry)
            self._write(entries)

        logger.info(f"Queued '{entry.title}' for {entry.submitter_name} (position {len(entries)})")
        return entry

    def pop_current(self) -> Optional[QueueEntry]:
        with self._lock:
            entries = self._read()
            if not entries:
                return None
            removed = entries.pop(0)
            self._write(entries)

        logger.info(f"Advanced past '{removed.title}', {len(entries)} left")
        return removed

    def delete_by_id(self, entry_id: str) -> bool:
        with self._lock:
            entries = self._read()
            remaining = [entry for entry in entries if entry.id != entry_id]
            if len(remaining) == len(entries):
                return False
            self._write(remaining)

        logger.info(f"Deleted entry {entry_id}")
        return True

    # --- Internals ---
    def _resolve_title(self, source_url: str, media_id: str) -> str:
        if self.title_lookup is None:
            return media_id
        try:
            return self.title_lookup(source_url, self.metadata_timeout) or media_id
        except MetadataLookupFailure as e:
            logger.warning(f"{e}; using '{media_id}' as title")
            return media_id

    def _read(self) -> List[QueueEntry]:
        if not os.path.exists(self.path):
            return []
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                # Not splitlines(): names may hold U+2028 and friends unescaped
                lines = f.read().split("\n")
        except (OSError, UnicodeDecodeError) as e:
            logger.error(f"Error reading queue {self.path}: {e}")
            return []

        entries = []
        for lineno, line in enumerate(lines, start=1):
            if not line.strip():
                continue
            try:
                entries.append(QueueEntry.from_record(json.loads(line)))
            except ValueError as e:
                logger.warning(f"Skipping unreadable record on line {lineno} of {self.path}: {e}")
        return entries

    def _write(self, entries: List[QueueEntry]) -> None:
        content = "".join(json.dumps(entry.to_record(), ensure_ascii=False) + "\n" for entry in entries)
        directory = os.path.dirname(os.path.abspath(self.path))
        tmp_path = None
        try:
            fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=".queue-", suffix=".tmp")
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(content)
            os.replace(tmp_path, self.path)
        except OSError as e:
            if tmp_path:
                with suppress(OSError):
                    os.remove(tmp_path)
            logger.error(f"Error writing queue {self.path}: {e}")
            raise StorageIOError(f"Failed to write queue: {e}") from e
