from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from ..core.errors import OcrError
from ..core.logging import setup_logging
from ..core.config import settings
from .routers import config, files, health, invoice

logger = setup_logging()
app = FastAPI(title="Invoice OCR Service")

ERROR_STATUS = {
    "file_invalid": status.HTTP_400_BAD_REQUEST,
    "config_missing": status.HTTP_400_BAD_REQUEST,
    "provider_rejected": status.HTTP_502_BAD_GATEWAY,
    "parse_failure": status.HTTP_502_BAD_GATEWAY,
    "network": status.HTTP_504_GATEWAY_TIMEOUT,
    "persistence": status.HTTP_500_INTERNAL_SERVER_ERROR,
}


@app.exception_handler(OcrError)
async def ocr_error_handler(request: Request, exc: OcrError):
    logger.error("Request failed", path=request.url.path, error_type=exc.kind, error=exc.message)
    return JSONResponse(
        status_code=ERROR_STATUS.get(exc.kind, status.HTTP_500_INTERNAL_SERVER_ERROR),
        content=exc.to_dict(),
    )


# Add custom exception handler for validation errors
@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.error("Validation error", errors=str(exc.errors()))
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=jsonable_encoder({"detail": exc.errors(), "body": str(await request.body())}),
    )


# CORS_ORIGINS can be set in .env as comma-separated list
allowed_origins = [origin.strip() for origin in settings.cors_origins.split(",")]

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(invoice.router)
app.include_router(config.router)
app.include_router(files.router)
