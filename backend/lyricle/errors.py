class LyricleError(Exception):
    """Base exception for lyricle.

    ``code`` is a stable machine-readable identifier, ``status_code`` the HTTP
    status the web layer answers with.
    """

    code = "INTERNAL_ERROR"
    status_code = 500

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ValidationError(LyricleError):
    """Raised when caller-supplied input is malformed."""

    code = "VALIDATION_ERROR"
    status_code = 400


class NotFoundError(LyricleError):
    code = "NOT_FOUND"
    status_code = 404


class GameNotFoundError(NotFoundError):
    """Raised when no game is scheduled for a date."""

    code = "GAME_NOT_FOUND"

    def __init__(self, date: str):
        self.date = date
        super().__init__(f"No game found for date {date}")


class GamePendingError(LyricleError):
    """Raised when a game exists but has no song assigned yet."""

    code = "GAME_PENDING"
    status_code = 409

    def __init__(self, date: str):
        self.date = date
        super().__init__(f"Game for {date} has no song yet")


class MaskIntegrityError(LyricleError):
    """Raised when a stored mask no longer matches the song it belongs to."""

    code = "MASK_INTEGRITY"

    def __init__(self, field: str, reason: str):
        self.field = field
        self.reason = reason
        super().__init__(f"Masked {field} is inconsistent with its song: {reason}")


class LyricsExtractionError(LyricleError):
    """Raised when the lyrics provider fails or returns no usable lyrics."""

    code = "LYRICS_EXTRACTION"
    status_code = 502


class CatalogError(LyricleError):
    """Raised when a music catalog request fails."""

    code = "CATALOG_ERROR"
    status_code = 502


class AdminDisabledError(LyricleError):
    code = "ADMIN_DISABLED"
    status_code = 403

    def __init__(self):
        super().__init__("Admin routes are disabled")
