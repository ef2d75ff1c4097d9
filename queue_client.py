import logging
from dataclasses import dataclass, field
from typing import List, Optional

import requests

from data_models import QueueEntry
from errors import NotFoundError, QueueClientError

logger = logging.getLogger(__name__)


@dataclass
class QueueSnapshot:
    current: Optional[QueueEntry]
    queue: List[QueueEntry] = field(default_factory=list)
    queue_length: int = 0
    up_next: int = 0


class QueueClient:
    """HTTP client the display uses to read and advance the shared queue."""

    def __init__(self, base_url: str, timeout: float = 10.0, session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def _request(self, method: str, path: str, **kwargs):
        url = f"{self.base_url}{path}"
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            raise QueueClientError(f"{method} {path} failed: {e}") from e

        if response.status_code == 404:
            raise NotFoundError(self._error_message(response))
        if not response.ok:
            raise QueueClientError(
                f"{method} {path} returned {response.status_code}: {self._error_message(response)}",
                status_code=response.status_code,
            )
        try:
            return response.json()
        except ValueError as e:
            raise QueueClientError(f"{method} {path} returned invalid JSON") from e

    @staticmethod
    def _error_message(response) -> str:
        try:
            return response.json().get("error", response.reason)
        except (ValueError, AttributeError):
            return str(response.reason)

    @staticmethod
    def _entry(data, key: str) -> QueueEntry:
        try:
            return QueueEntry.from_record(data.get(key))
        except (ValueError, AttributeError) as e:
            raise QueueClientError(f"Malformed '{key}' in response: {e}") from e

    def current_snapshot(self) -> QueueSnapshot:
        data = self._request("GET", "/queue/current")
        try:
            current = QueueEntry.from_record(data["current"]) if data.get("current") else None
            queue = [QueueEntry.from_record(record) for record in data.get("queue", [])]
            queue_length = int(data.get("queueLength", 0))
            up_next = int(data.get("upNext", max(0, queue_length - 1)))
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise QueueClientError(f"Malformed snapshot: {e}") from e
        return QueueSnapshot(current=current, queue=queue, queue_length=queue_length, up_next=up_next)

    def advance(self) -> QueueEntry:
        """Pop the current entry. Raises NotFoundError if the queue is already empty."""
        data = self._request("DELETE", "/queue/current")
        return self._entry(data, "removed")

    def delete_entry(self, entry_id: str) -> None:
        self._request("DELETE", "/queue/entry", json={"id": entry_id})

    def auto_fill(self) -> QueueEntry:
        data = self._request("POST", "/queue/auto")
        return self._entry(data, "entry")
