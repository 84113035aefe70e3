"""
Document preparation: validate a file's type, bound its size, and encode it
as the base64 payload the OCR provider expects.
"""

import base64
import io
import math
from dataclasses import dataclass
from pathlib import Path
from loguru import logger
from PIL import Image, UnidentifiedImageError
from ..core.errors import FileInvalidError

SUPPORTED_IMAGE_EXTENSIONS = ("jpg", "jpeg", "png", "bmp")
SUPPORTED_PDF_EXTENSION = "pdf"

_FILE_TYPES = {
    "jpg": "jpeg",
    "jpeg": "jpeg",
    "png": "png",
    "bmp": "bmp",
    "pdf": "pdf",
}

MIN_SCALE = 0.1


@dataclass(frozen=True)
class PreparedDocument:
    path: str
    name: str
    file_type: str  # jpeg | png | bmp | pdf
    size: int  # size on disk, before any compression
    payload: str  # base64 of the bytes actually sent

    @property
    def kind(self) -> str:
        """'pdf' or 'image', which selects the provider's form field"""
        return "pdf" if self.file_type == "pdf" else "image"


@dataclass(frozen=True)
class FileInfo:
    path: str
    name: str
    file_type: str
    size: int


class DocumentPreparer:
    """
    Turns a local file into a transport-ready, size-bounded payload.

    Images over the size limit are downscaled once and re-encoded as JPEG;
    PDFs are sent as-is.
    """

    def __init__(self, max_image_bytes: int = 4 * 1024 * 1024):
        self.max_image_bytes = max_image_bytes

    @staticmethod
    def supported_extensions() -> list[str]:
        return [*SUPPORTED_IMAGE_EXTENSIONS, SUPPORTED_PDF_EXTENSION]

    @staticmethod
    def detect_file_type(path: Path) -> str:
        extension = path.suffix.lstrip(".").lower()
        if not extension:
            raise FileInvalidError(f"Cannot determine file extension: {path}")
        if extension not in _FILE_TYPES:
            raise FileInvalidError(
                f"Unsupported file type: {extension} (supported: {', '.join(DocumentPreparer.supported_extensions())})"
            )
        return _FILE_TYPES[extension]

    def describe(self, file_path: str | Path) -> FileInfo:
        """Check type and existence without reading the content"""
        path = Path(file_path)
        file_type = self.detect_file_type(path)
        try:
            size = path.stat().st_size
        except OSError as e:
            raise FileInvalidError(f"Cannot read file info {path}: {e}") from e
        return FileInfo(path=str(path), name=path.name, file_type=file_type, size=size)

    def prepare(self, file_path: str | Path) -> PreparedDocument:
        path = Path(file_path)
        file_type = self.detect_file_type(path)

        try:
            data = path.read_bytes()
        except OSError as e:
            raise FileInvalidError(f"Cannot read file {path}: {e}") from e

        size = len(data)
        if file_type != "pdf" and size > self.max_image_bytes:
            data = self._compress_image(data, path)

        return PreparedDocument(
            path=str(path),
            name=path.name,
            file_type=file_type,
            size=size,
            payload=base64.b64encode(data).decode("ascii"),
        )

    def scale_for(self, current_size: int) -> float:
        """Linear scale factor so the pixel count shrinks roughly by limit/size"""
        scale = math.sqrt(self.max_image_bytes / current_size)
        return max(MIN_SCALE, min(1.0, scale))

    def _compress_image(self, data: bytes, path: Path) -> bytes:
        try:
            with Image.open(io.BytesIO(data)) as img:
                scale = self.scale_for(len(data))
                new_size = (max(1, int(img.width * scale)), max(1, int(img.height * scale)))
                resized = img.convert("RGB").resize(new_size, Image.LANCZOS)
        except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as e:
            raise FileInvalidError(f"Cannot load image {path}: {e}") from e

        buffer = io.BytesIO()
        try:
            resized.save(buffer, format="JPEG")
        except OSError as e:
            raise FileInvalidError(f"Cannot compress image {path}: {e}") from e
        compressed = buffer.getvalue()

        logger.info(
            "Compressed oversized image",
            path=str(path),
            original_bytes=len(data),
            compressed_bytes=len(compressed),
            scale=round(scale, 3),
        )

        if len(compressed) > self.max_image_bytes:
            raise FileInvalidError(
                f"Image {path} is still {len(compressed)} bytes after compression "
                f"(limit {self.max_image_bytes})"
            )
        return compressed
