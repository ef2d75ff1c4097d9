import datetime
import uuid
from dataclasses import dataclass
from typing import Any, Dict, Optional


# --- Data Structure ---
@dataclass(frozen=True)
class QueueEntry:
    id: str
    source_url: str
    media_id: str
    title: str
    submitter_name: str
    submitted_at: str

    @classmethod
    def create(cls, source_url: str, media_id: str, submitter_name: str, title: Optional[str] = None):
        return cls(
            id=str(uuid.uuid4()),
            source_url=source_url,
            media_id=media_id,
            title=title or media_id,
            submitter_name=submitter_name,
            submitted_at=datetime.datetime.now(datetime.timezone.utc).isoformat(),
        )

    def to_record(self) -> Dict[str, str]:
        return {
            "id": self.id,
            "sourceUrl": self.source_url,
            "mediaId": self.media_id,
            "title": self.title,
            "submitterName": self.submitter_name,
            "submittedAt": self.submitted_at,
        }

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "QueueEntry":
        """Build an entry from a stored or transmitted record.

        Records written before the field rename (youtubeUrl, videoId, userName,
        addedAt) are accepted too. A missing title falls back to the media id.
        Raises ValueError when a required field is missing or empty.
        """
        if not isinstance(record, dict):
            raise ValueError("record is not an object")

        def pick(*keys):
            for key in keys:
                value = record.get(key)
                if isinstance(value, str) and value:
                    return value
            return None

        entry_id = pick("id")
        source_url = pick("sourceUrl", "youtubeUrl")
        media_id = pick("mediaId", "videoId")
        submitter_name = pick("submitterName", "userName")
        submitted_at = pick("submittedAt", "addedAt")
        missing = [
            name
            for name, value in (
                ("id", entry_id),
                ("sourceUrl", source_url),
                ("mediaId", media_id),
                ("submitterName", submitter_name),
                ("submittedAt", submitted_at),
            )
            if value is None
        ]
        if missing:
            raise ValueError(f"record is missing {', '.join(missing)}")

        return cls(
            id=entry_id,
            source_url=source_url,
            media_id=media_id,
            title=pick("title") or media_id,
            submitter_name=submitter_name,
            submitted_at=submitted_at,
        )
