"""
Error taxonomy for the recognition pipeline.

Every layer converts lower-level failures (httpx, pydantic, sqlite3, Pillow,
file I/O) into exactly one of these kinds and re-raises. Nothing here retries.

    OcrError (base)
    ├── ConfigMissingError     credentials or cache entries absent
    ├── NetworkError           transport failure or timeout
    ├── ProviderRejectedError  provider returned its error envelope
    ├── ParseFailureError      body does not match the expected shape
    ├── FileInvalidError       unsupported type, unreadable or oversize
    └── PersistenceError       store write failed
"""


class OcrError(Exception):
    """
    Base exception for all recognition errors.

    Attributes:
        message: Human-readable error message.
        kind: Stable machine-readable error kind, returned to callers.
    """

    kind = "ocr"

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    def to_dict(self) -> dict:
        """Structured form returned to API callers: {"type": kind, "message": message}"""
        return {"type": self.kind, "message": self.message}


class ConfigMissingError(OcrError):
    kind = "config_missing"


class NetworkError(OcrError):
    kind = "network"


class ProviderRejectedError(OcrError):
    """Raised for a well-formed provider error envelope, whatever the HTTP status."""

    kind = "provider_rejected"

    def __init__(self, message: str, error_code: int | None = None):
        self.error_code = error_code
        super().__init__(message)


class ParseFailureError(OcrError):
    kind = "parse_failure"


class FileInvalidError(OcrError):
    kind = "file_invalid"


class PersistenceError(OcrError):
    kind = "persistence"
