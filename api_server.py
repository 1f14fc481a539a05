from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import AliasChoices, BaseModel, Field
from starlette.datastructures import Headers
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from app.core.container import Container, global_container
from codec.hexutil import parse_hex, to_hex
from errors import PayloadTooLarge, RelayError, TransportError, classify_exception
from observability import build_log_context, log_event, now_ms

API_CTX = build_log_context(tool="api_server")


class StoreTransactionRequest(BaseModel):
    transaction_id: str = Field(validation_alias=AliasChoices("transaction_id", "id"))
    bcs_hex: str = Field(validation_alias=AliasChoices("bcs_hex", "payload_hex"))


class StoreSignatureRequest(BaseModel):
    transaction_id: str = Field(validation_alias=AliasChoices("transaction_id", "id"))
    signature_hex: str


def _require_id(transaction_id: str) -> str:
    tid = transaction_id.strip()
    if not tid:
        raise TransportError("transaction_id must not be empty")
    return tid


def _decode_hex(field_name: str, value: str) -> bytes:
    try:
        data = parse_hex(value)
    except ValueError as e:
        raise TransportError(f"{field_name} is not valid hex: {e}", {"field": field_name}) from e
    if not data:
        raise TransportError(f"{field_name} must not be empty", {"field": field_name})
    return data


def _json(status_code: int, body: Dict[str, Any]) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={k: v for k, v in body.items() if v is not None})


_HTTP_ERROR_CODES = {404: "not_found", 405: "method_not_allowed"}


class BodySizeLimitMiddleware:
    """
    Reject request bodies larger than `max_body` bytes.

    A declared Content-Length is checked up front. The body is then read and
    counted as it arrives, so chunked uploads without a Content-Length are held
    to the same limit before any handler parses them.
    """

    def __init__(self, app: ASGIApp, max_body: int) -> None:
        self.app = app
        self.max_body = max_body

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        raw = Headers(scope=scope).get("content-length")
        if raw is not None:
            try:
                size = int(raw)
            except ValueError:
                response = _json(400, {"success": False, "error_code": "bad_request", "message": "Invalid Content-Length"})
                await response(scope, receive, send)
                return
            if size > self.max_body:
                await self._reject(size, scope, receive, send)
                return

        messages: List[Message] = []
        received = 0
        while True:
            message = await receive()
            messages.append(message)
            if message["type"] != "http.request":
                break
            received += len(message.get("body", b""))
            if received > self.max_body:
                await self._reject(received, scope, receive, send)
                return
            if not message.get("more_body", False):
                break

        async def replay() -> Message:
            if messages:
                return messages.pop(0)
            return await receive()

        await self.app(scope, replay, send)

    async def _reject(self, size: int, scope: Scope, receive: Receive, send: Send) -> None:
        err = PayloadTooLarge(size, self.max_body)
        log_event("request_rejected", ctx=API_CTX, data={"code": err.code, **err.data}, level=logging.WARNING)
        response = _json(err.status_code, {"success": False, "error_code": err.code, "message": err.message})
        await response(scope, receive, send)


def create_app(container: Optional[Container] = None) -> FastAPI:
    """
    Build the relay HTTP app around a container.

    Tests pass their own container so each gets an isolated store.
    """
    c = container or global_container
    store = c.transaction_store
    audit = c.audit_log
    max_body = c.settings.MAX_BODY_BYTES

    app = FastAPI(title="Multi-Agent Transaction Relay")

    app.add_middleware(BodySizeLimitMiddleware, max_body=max_body)

    # Browser wallets call the relay directly.
    origins = sorted(c.settings.CORS_ORIGINS) if not c.settings.cors_allow_all else ["*"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    def _failure(err: Exception, operation: str, transaction_id: str = "") -> JSONResponse:
        app_err = classify_exception(err)
        level = logging.ERROR if app_err.status_code >= 500 else logging.WARNING
        log_event(
            f"{operation}_failed",
            ctx=API_CTX,
            data={"transaction_id": transaction_id, "code": app_err.code, "message": app_err.message},
            level=level,
        )
        audit.append(
            ts_ms=now_ms(),
            transaction_id=transaction_id,
            operation=operation,
            ok=False,
            error_code=app_err.code,
            mode=store.mode,
        )
        message = app_err.message if app_err.status_code < 500 else "Internal error"
        return _json(
            app_err.status_code,
            {
                "success": False,
                "transaction_id": transaction_id or None,
                "error_code": app_err.code,
                "message": message,
            },
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException):
        code = _HTTP_ERROR_CODES.get(exc.status_code, "http_error")
        err = RelayError(code, str(exc.detail), {"path": request.url.path}, exc.status_code)
        response = _failure(err, "request")
        if exc.headers:
            response.headers.update(exc.headers)
        return response

    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError):
        problems = []
        for e in exc.errors():
            loc = ".".join(str(p) for p in e.get("loc", ()) if p != "body")
            problems.append(f"{loc or 'body'}: {e.get('msg')}")
        err = TransportError("Invalid request: " + "; ".join(problems))
        return _failure(err, "request")

    @app.get("/health")
    async def health():
        return {"ok": True, "mode": store.mode}

    @app.post("/transaction")
    async def store_transaction(req: StoreTransactionRequest):
        tid = req.transaction_id
        try:
            tid = _require_id(req.transaction_id)
            payload = _decode_hex("bcs_hex", req.bcs_hex)
            log_event(
                "transaction_received",
                ctx=API_CTX,
                data={"transaction_id": tid, "hex_length": len(req.bcs_hex), "prefix": req.bcs_hex[:60]},
            )
            result = store.put_transaction(tid, payload)
        except Exception as e:
            return _failure(e, "store_transaction", tid)

        audit.append(
            ts_ms=now_ms(),
            transaction_id=tid,
            operation="store_transaction",
            ok=True,
            mode=store.mode,
            summary={
                "length": len(payload),
                "sequence_number": result.sequence_number,
                "payload_changed": result.payload_changed,
            },
        )
        return _json(
            200,
            {
                "success": True,
                "transaction_id": tid,
                "sequence_number": result.sequence_number,
                "message": "Transaction stored" if result.created else "Transaction already stored",
            },
        )

    @app.post("/signature")
    async def store_signature(req: StoreSignatureRequest):
        tid = req.transaction_id
        try:
            tid = _require_id(req.transaction_id)
            signature = _decode_hex("signature_hex", req.signature_hex)
            log_event(
                "signature_received",
                ctx=API_CTX,
                data={"transaction_id": tid, "hex_length": len(req.signature_hex), "prefix": req.signature_hex[:60]},
            )
            store.put_signature(tid, signature)
        except Exception as e:
            return _failure(e, "store_signature", tid)

        audit.append(
            ts_ms=now_ms(),
            transaction_id=tid,
            operation="store_signature",
            ok=True,
            mode=store.mode,
            summary={"length": len(signature)},
        )
        return _json(200, {"success": True, "transaction_id": tid, "message": "Signature stored"})

    @app.get("/transaction/{transaction_id:path}")
    async def get_transaction(transaction_id: str):
        try:
            snap = store.get(_require_id(transaction_id))
        except Exception as e:
            return _failure(e, "get_transaction", transaction_id)

        audit.append(
            ts_ms=now_ms(),
            transaction_id=snap.transaction_id,
            operation="get_transaction",
            ok=True,
            mode=store.mode,
            summary={"state": snap.state, "payload_changed": snap.payload_changed},
        )
        return _json(
            200,
            {
                "success": True,
                "bcs_hex": to_hex(snap.payload),
                "secondary_signature_hex": to_hex(snap.secondary_signature)
                if snap.secondary_signature is not None
                else None,
                "sequence_number": snap.sequence_number,
                "stored_at": snap.created_at,
                "message": f"Transaction retrieved (stored {snap.age_seconds} seconds ago)",
            },
        )

    return app


app = create_app()
