"""Upload API routes."""
from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from fastapi.concurrency import run_in_threadpool

from filedrop.uploads.handler import UploadRequestHandler
from filedrop.uploads.validator import RawRequest

router = APIRouter(tags=["uploads"])

BASE64_TRANSFER_ENCODING = "base64"


def get_upload_handler(request: Request) -> UploadRequestHandler:
    return request.app.state.upload_handler


async def to_raw_request(request: Request) -> RawRequest:
    body = await request.body()
    transfer_encoding = request.headers.get("content-transfer-encoding", "")
    return RawRequest(
        method=request.method,
        body=body,
        is_base64_encoded=transfer_encoding.strip().lower() == BASE64_TRANSFER_ENCODING,
        query=dict(request.query_params),
    )


# PUT/PATCH are routed here so the handler renders its own 405 body.
@router.api_route("/upload", methods=["POST", "GET", "DELETE", "PUT", "PATCH"])
async def upload_endpoint(
    request: Request,
    handler: UploadRequestHandler = Depends(get_upload_handler),
) -> JSONResponse:
    raw = await to_raw_request(request)
    response = await run_in_threadpool(handler.handle, raw)
    return JSONResponse(content=response.body, status_code=response.status_code)
