from pydantic import Field
from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    app_name: str = Field("invoice-ocr-service", alias="APP_NAME")
    app_env: str = Field("dev", alias="APP_ENV")
    log_level: str = Field("INFO", alias="LOG_LEVEL")

    # SQLite file holding the invoices and configs tables
    database_path: str = Field("invoices.db", alias="DATABASE_PATH")

    # Baidu OCR endpoints
    baidu_token_url: str = Field("https://aip.baidubce.com/oauth/2.0/token", alias="BAIDU_TOKEN_URL")
    baidu_vat_invoice_url: str = Field(
        "https://aip.baidubce.com/rest/2.0/ocr/v1/vat_invoice", alias="BAIDU_VAT_INVOICE_URL"
    )
    baidu_invoice_url: str = Field("https://aip.baidubce.com/rest/2.0/ocr/v1/invoice", alias="BAIDU_INVOICE_URL")

    # Every outbound call uses the same timeout
    request_timeout_seconds: float = Field(30.0, alias="OCR_REQUEST_TIMEOUT_SECONDS")
    token_refresh_margin_seconds: int = Field(3600, alias="TOKEN_REFRESH_MARGIN_SECONDS")

    # Images above this size are downscaled before upload
    max_image_bytes: int = Field(4 * 1024 * 1024, alias="MAX_IMAGE_BYTES")

    # 1 = strictly sequential batches
    batch_concurrency: int = Field(1, alias="BATCH_CONCURRENCY", ge=1)

    # CORS allowed origins (comma-separated list)
    cors_origins: str = Field("http://localhost:3000,http://127.0.0.1:3000", alias="CORS_ORIGINS")

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "populate_by_name": True, "extra": "ignore"}

settings = Settings()
