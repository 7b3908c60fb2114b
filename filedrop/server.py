"""FastAPI app for the file upload API."""
from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from filedrop.common.error_envelope import register_error_handlers
from filedrop.common.health import router as health_router
from filedrop.config import runtime_config
from filedrop.config.runtime_config import UploadConfig
from filedrop.uploads.handler import UploadRequestHandler, build_upload_handler
from filedrop.uploads.routes import router as uploads_router


def create_app(
    config: Optional[UploadConfig] = None,
    handler: Optional[UploadRequestHandler] = None,
) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # One S3 client and one DynamoDB table handle per process.
        if app.state.upload_handler is None:
            app.state.upload_handler = build_upload_handler(config or UploadConfig.from_env())
        yield
        app.state.upload_handler = None

    app = FastAPI(title="filedrop", lifespan=lifespan)
    app.state.upload_handler = handler

    register_error_handlers(app)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(runtime_config.get_cors_allow_origins()),
        allow_methods=["POST", "GET", "DELETE", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "Content-Transfer-Encoding"],
    )
    app.include_router(health_router)
    app.include_router(uploads_router)
    return app


app = create_app()
