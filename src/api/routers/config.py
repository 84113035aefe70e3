from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from ..deps import get_config_store, get_recognizer
from ...services.recognizer import InvoiceRecognizer
from ...services.storage import ConfigStoreBase

router = APIRouter(prefix="/config", tags=["config"])


class SetConfigRequest(BaseModel):
    value: str
    description: str | None = None


class TestConnectionRequest(BaseModel):
    api_key: str
    secret_key: str


@router.post("/test-connection")
async def test_connection(req: TestConnectionRequest, recognizer: InvoiceRecognizer = Depends(get_recognizer)):
    """Validate OCR credentials by forcing a token refresh"""
    success = await recognizer.test_connection(req.api_key, req.secret_key)
    return {"success": success}


@router.get("")
async def list_config(store: ConfigStoreBase = Depends(get_config_store)):
    return {"configs": store.list_all()}


@router.get("/{key}")
async def get_config(key: str, store: ConfigStoreBase = Depends(get_config_store)):
    return {"key": key, "value": store.get(key)}


@router.put("/{key}")
async def set_config(key: str, req: SetConfigRequest, store: ConfigStoreBase = Depends(get_config_store)):
    store.set(key, req.value, req.description)
    return {"key": key, "value": req.value}


@router.delete("/{key}")
async def delete_config(key: str, store: ConfigStoreBase = Depends(get_config_store)):
    if not store.delete(key):
        raise HTTPException(status_code=404, detail="Config key not found")
    return {"deleted": True}
