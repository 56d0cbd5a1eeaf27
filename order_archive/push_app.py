"""
Cloud Run entrypoint: Pub/Sub push subscription -> order archive.

Status mapping (Pub/Sub acks 2xx, redelivers anything else):
- archived / rejected -> 200
- undecodable message -> 400
- store or unexpected failure -> 500
"""

from __future__ import annotations

import os
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Optional

from fastapi import FastAPI, HTTPException, Request, Response

from order_archive.envelope import from_push_body
from order_archive.errors import DecodeError
from order_archive.handler import OrderArchiveHandler, OutcomeStatus
from order_archive.logging import log


def _require_json_content_type(req: Request) -> None:
    media_type = str(req.headers.get("content-type") or "").split(";", 1)[0].strip().lower()
    if media_type != "application/json":
        raise HTTPException(status_code=415, detail="unsupported_media_type")


def create_app(handler: Optional[OrderArchiveHandler] = None) -> FastAPI:
    @asynccontextmanager
    async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
        if app.state.handler is None:
            app.state.handler = OrderArchiveHandler.from_env()
        yield

    app = FastAPI(title="Pub/Sub -> Firestore Order Archive", version="0.1.0", lifespan=_lifespan)
    app.state.handler = handler

    @app.get("/healthz")
    async def healthz() -> dict[str, Any]:
        return {"status": "ok"}

    @app.get("/readyz")
    async def readyz(response: Response) -> dict[str, Any]:
        handler: Optional[OrderArchiveHandler] = getattr(app.state, "handler", None)
        if handler is None:
            response.status_code = 503
            return {"status": "not_ready"}
        return {"status": "ok", "collection": handler.config.collection_name}

    @app.post("/pubsub/push")
    async def pubsub_push(req: Request) -> dict[str, Any]:
        try:
            _require_json_content_type(req)
        except HTTPException as e:
            log("pubsub.rejected", severity="ERROR", reason="unsupported_media_type", error=str(e.detail))
            raise

        try:
            body = await req.json()
        except Exception as e:
            log("pubsub.rejected", severity="ERROR", reason="invalid_json", error=str(e))
            raise HTTPException(status_code=400, detail="invalid_json") from e

        if not isinstance(body, dict):
            log("pubsub.rejected", severity="ERROR", reason="invalid_envelope", error="body_not_object")
            raise HTTPException(status_code=400, detail="invalid_envelope")

        handler: Optional[OrderArchiveHandler] = app.state.handler
        if handler is None:
            raise HTTPException(status_code=503, detail="not_ready")

        outcome = await handler.handle_event(from_push_body(body))
        if outcome.status is OutcomeStatus.FAILED:
            if isinstance(outcome.error, DecodeError):
                raise HTTPException(status_code=400, detail=str(outcome.error))
            raise HTTPException(status_code=500, detail="archive_failed")

        return {
            "ok": True,
            "status": outcome.status.value,
            "message": outcome.message,
            "eventId": outcome.event_id,
            "documentId": outcome.document_id,
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    port = int(os.getenv("PORT") or "8080")
    uvicorn.run(app, host="0.0.0.0", port=port, log_level="warning", access_log=False)
