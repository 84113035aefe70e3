from fastapi import APIRouter
from pydantic import BaseModel
from ...core.config import settings
from ...services.document import DocumentPreparer, FileInfo

router = APIRouter(prefix="/files", tags=["files"])

preparer = DocumentPreparer(settings.max_image_bytes)


class ValidateFileRequest(BaseModel):
    file_path: str


@router.get("/supported-extensions")
async def supported_extensions():
    return {"extensions": DocumentPreparer.supported_extensions()}


@router.post("/validate", response_model=FileInfo)
async def validate_file(req: ValidateFileRequest):
    """Check a file before queueing it; unsupported or missing files return a file_invalid error"""
    return preparer.describe(req.file_path)
