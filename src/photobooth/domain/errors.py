"""Error taxonomy for session and upload operations."""


class PhotoboothError(Exception):
    """Base class for errors reported to clients as JSON."""

    status_code = 500

    def __init__(self, message: str, **extra: object) -> None:
        super().__init__(message)
        self.message = message
        self.extra = extra

    def to_payload(self) -> dict[str, object]:
        """Serialize as a client-facing error body."""
        return {"success": False, "error": self.message, **self.extra}


class Conflict(PhotoboothError):
    """A session is already active."""

    status_code = 409


class InvalidState(PhotoboothError):
    """The operation needs a session state that does not hold."""

    status_code = 400


class EmptySession(PhotoboothError):
    """A session cannot be finished without photos."""

    status_code = 400


class NotFound(PhotoboothError):
    """Unknown session, photo or short id."""

    status_code = 404


class NoFiles(PhotoboothError):
    """An upload request carried no files."""

    status_code = 400


class InvalidFileType(PhotoboothError):
    """An uploaded file is not an allowed image type."""

    status_code = 400


class FileTooLarge(PhotoboothError):
    """An uploaded file exceeds the size limit."""

    status_code = 413


class CaptureFailed(PhotoboothError):
    """The camera did not produce a photo after all attempts."""

    status_code = 500


class StorageUnavailable(PhotoboothError):
    """Remote storage rejected or failed a request; retryable."""

    status_code = 503


class PermanentFailure(PhotoboothError):
    """An upload exhausted its retries and was dropped."""
