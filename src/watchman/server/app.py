# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""JSON probe endpoint."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from ..config import ProbeSettings, load_probe_settings
from ..errors import InvalidRequestError
from ..runtime import Watchman
from ..telemetry import flush_error_reporting, init_error_reporting
from ..version import __version__

logger = logging.getLogger(__name__)


class CheckRequestBody(BaseModel):
    url: str
    timeout: str | None = None
    redirects_to_follow: int = 0
    verify_certs: bool = True


def create_app(settings: ProbeSettings | None = None, *, watchman: Watchman | None = None) -> FastAPI:
    """Build the service; probe requests are served from FastAPI's worker thread pool."""
    if watchman is None:
        watchman = Watchman(settings or load_probe_settings())
    settings = watchman.settings

    @asynccontextmanager
    async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
        reporting = init_error_reporting(settings)
        try:
            yield
        finally:
            if reporting:
                flush_error_reporting()

    app = FastAPI(title="watchman", version=__version__, lifespan=lifespan)

    @app.exception_handler(RequestValidationError)
    async def _bad_request(_request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"detail": jsonable_encoder(exc.errors())})

    def check(body: CheckRequestBody) -> JSONResponse:
        logger.info("request received")
        try:
            response = watchman.check(body.model_dump(exclude_none=True))
        except InvalidRequestError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return JSONResponse(content=response.to_dict())

    app.add_api_route("/", check, methods=["POST"])
    app.add_api_route("/check", check, methods=["POST"])

    @app.get("/healthz")
    def healthz() -> dict[str, str]:
        return {"status": "ok", "version": __version__}

    return app


__all__ = ["CheckRequestBody", "create_app"]
