"""
Chat router HTTP function.

Invariants:
    - OPTIONS on any path answers with the permissive CORS header set
    - Every other response, success or error, carries the same headers and a
      JSON content type
    - Errors are returned as {"message": ...}; nothing is raised to the server
    - Quota is checked before the body is read; inference is delegated to the
      injected backend
"""

import json
import logging
from typing import Any, Awaitable, Callable, Optional

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse, Response

from access_gate.models.usage import QuotaCheck

logger = logging.getLogger(__name__)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
}

ChatBackend = Callable[[dict[str, Any]], Awaitable[Any]]
QuotaGate = Callable[[str], Awaitable[QuotaCheck]]


def _json(content: Any, status_code: int = status.HTTP_200_OK) -> JSONResponse:
    return JSONResponse(content=content, status_code=status_code, headers=CORS_HEADERS)


def _error(status_code: int, message: str, **extra: Any) -> JSONResponse:
    return _json({"message": message, **extra}, status_code)


def create_app(backend: ChatBackend, quota_check: Optional[QuotaGate] = None) -> FastAPI:
    app = FastAPI(title="access-gate chat router", version="0.1.0")

    @app.middleware("http")
    async def cors(request: Request, call_next: Callable[[Request], Awaitable[Response]]) -> Response:
        if request.method == "OPTIONS":
            return Response(status_code=status.HTTP_200_OK, headers=CORS_HEADERS)
        response = await call_next(request)
        for key, value in CORS_HEADERS.items():
            response.headers[key] = value
        return response

    @app.post("/{path:path}")
    async def chat_router(request: Request, path: str = "") -> JSONResponse:
        authorization = request.headers.get("authorization")
        if not authorization:
            return _error(status.HTTP_401_UNAUTHORIZED, "Authentication required for AI chat")
        token = authorization.replace("Bearer ", "", 1).strip()

        try:
            if quota_check is not None:
                check = await quota_check(token)
                if not check.can_use_ai:
                    return _error(
                        status.HTTP_429_TOO_MANY_REQUESTS,
                        "AI usage quota exceeded",
                        quota_exceeded=True,
                        current_usage=check.snapshot.current_usage,
                        quota_limit=check.snapshot.quota_limit,
                        plan_name=check.snapshot.plan_name,
                    )

            raw = await request.body()
            if not raw.strip():
                return _error(status.HTTP_400_BAD_REQUEST, "Request body is empty")
            try:
                body = json.loads(raw)
            except json.JSONDecodeError as e:
                return _error(status.HTTP_400_BAD_REQUEST, f"Invalid JSON in request body: {e}")
            if not isinstance(body, dict) or not (body.get("message") or body.get("messages")):
                return _error(status.HTTP_400_BAD_REQUEST, "Message or messages array is required")
            if not body.get("conversationId") and body.get("sessionId"):
                body["conversationId"] = body["sessionId"]

            logger.info(f"Routing chat request {body.get('requestId')} (model={body.get('selectedModelId')})")
            payload = await backend(body)
        except Exception as e:
            logger.error(f"Chat router failed on /{path}: {e}", exc_info=True)
            return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, str(e) or "An unexpected error occurred")

        return _json(payload)

    return app
