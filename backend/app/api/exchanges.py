# app/api/exchanges.py

import json
import logging
from typing import Any, List, Optional, Union
from urllib.parse import quote

from fastapi import APIRouter, Depends, File, Request, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import Response
from pydantic import BaseModel

from app.core.config import Settings
from app.core.errors import PayloadTooLarge
from app.core.exchange import ConsumedFile, ExchangeMetadata, ItemMetadata, UploadedFile
from app.infra.database import check_connection
from app.infra.exchange_store import ExchangeStore
from app.services import (
    consumption_service,
    ingestion_service,
    lifecycle_service,
    verification_service,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


# =========================
# DEPENDENCIES
# =========================

def get_store(request: Request) -> ExchangeStore:
    return request.app.state.store


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


# =========================
# SCHEMAS
# =========================

class GenerateCodeSchema(BaseModel):
    data: Any = None
    multipleData: Optional[List[Any]] = None


class VerifyCodeSchema(BaseModel):
    code: Optional[Union[str, int]] = None


def _iso(value):
    return value.isoformat() if value else None


def _item_to_json(item: ItemMetadata) -> dict:
    return {
        "id": item.index,
        "isFile": item.is_file,
        "fileName": item.file_name,
        "fileType": item.media_type,
        "fileSize": item.byte_size,
        "downloaded": item.consumed,
        "data": None if item.is_file else item.data,
    }


def _metadata_to_json(metadata: ExchangeMetadata) -> dict:
    return {
        "success": True,
        "code": metadata.code,
        "items": [_item_to_json(item) for item in metadata.items],
        "itemCount": metadata.item_count,
        "verified": metadata.verified,
        "createdAt": _iso(metadata.created_at),
        "verifiedAt": _iso(metadata.verified_at),
    }


def _attachment(file_name: str) -> str:
    quoted = quote(file_name)
    if quoted != file_name:
        return f"attachment; filename*=utf-8''{quoted}"
    return f'attachment; filename="{file_name}"'


# =========================
# ROUTES
# =========================

@router.post("/generate-code")
def generate_code(payload: GenerateCodeSchema, store: ExchangeStore = Depends(get_store)):
    """Store text/JSON data (one value or a list) and issue a code"""
    result = ingestion_service.create_from_data(
        store, data=payload.data, multiple_data=payload.multipleData
    )
    return {
        "success": True,
        "code": result.code,
        "itemCount": result.item_count,
        "message": f"{result.item_count} data item(s) stored and code generated successfully",
    }


@router.post("/upload-file")
async def upload_files(
    files: Optional[List[UploadFile]] = File(None),
    store: ExchangeStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
):
    """Store up to MAX_FILES uploaded files and issue a code"""
    uploads = []
    for upload in files or []:
        # Reject before buffering when the parser already knows the size
        if upload.size is not None and upload.size > settings.max_file_size:
            raise PayloadTooLarge(
                f"File size exceeds {ingestion_service.format_size(settings.max_file_size)} "
                "limit. Please upload smaller files."
            )
        content = await upload.read()
        uploads.append(
            UploadedFile(
                file_name=upload.filename,
                media_type=upload.content_type,
                content=content,
            )
        )

    result = await run_in_threadpool(
        ingestion_service.create_from_files,
        store,
        uploads,
        settings.max_file_size,
        settings.max_files,
    )
    return {
        "success": True,
        "code": result.code,
        "itemCount": result.item_count,
        "items": [
            {
                "fileName": item.file_name,
                "fileType": item.media_type,
                "fileSize": item.byte_size,
            }
            for item in result.items
        ],
        "message": f"{result.item_count} file(s) uploaded and code generated successfully",
    }


@router.post("/verify-code")
def verify_code(payload: VerifyCodeSchema, store: ExchangeStore = Depends(get_store)):
    """Verify a code and preview its items without downloading anything"""
    metadata = verification_service.verify_code(store, payload.code)
    body = _metadata_to_json(metadata)
    body.pop("verifiedAt")
    return body


@router.get("/data/{code}")
def get_data(code: str, store: ExchangeStore = Depends(get_store)):
    """Read-only view of a code's items"""
    metadata = verification_service.describe_exchange(store, code)
    return _metadata_to_json(metadata)


@router.get("/download/{code}/{item_id}")
def download_item(code: str, item_id: str, store: ExchangeStore = Depends(get_store)):
    """Download one item. Each item can be downloaded exactly once."""
    result = consumption_service.consume_item(store, code, item_id)

    if isinstance(result, ConsumedFile):
        return Response(
            content=result.content,
            media_type=result.media_type,
            headers={
                "Content-Disposition": _attachment(result.file_name),
                "Content-Length": str(result.byte_size),
            },
        )

    body = json.dumps(
        {
            "code": result.code,
            "itemId": result.item_index,
            "data": result.data,
            "createdAt": _iso(result.created_at),
        },
        indent=2,
    )
    return Response(
        content=body,
        media_type="application/json",
        headers={"Content-Disposition": _attachment(result.file_name)},
    )


@router.delete("/data/{code}")
def delete_data(code: str, store: ExchangeStore = Depends(get_store)):
    """Delete a code and all of its items"""
    lifecycle_service.delete_exchange(store, code)
    return {"success": True, "message": "Data deleted successfully"}


@router.get("/health")
def health_check(request: Request):
    database_ok = check_connection(request.app.state.engine)
    return {
        "status": "OK",
        "message": "Server is running",
        "database": "ok" if database_ok else "unavailable",
    }
