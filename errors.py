class KaraokeError(Exception):
    """Base class for queue errors. `status_code` is the HTTP status to answer with."""

    status_code = 500


class InvalidInputError(KaraokeError):
    status_code = 400


class NotFoundError(KaraokeError):
    status_code = 404


class StorageIOError(KaraokeError):
    status_code = 500


class CatalogEmptyError(KaraokeError):
    status_code = 500


class MetadataLookupFailure(KaraokeError):
    """Title lookup failed. Never surfaced to a submitter."""


class QueueClientError(KaraokeError):
    """The display could not talk to the queue server."""

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.status_code = status_code
