"""
Chat request dispatcher: canonicalizes a chat submission and invokes the
chat router function.

Failure classification:
- the remote call errors      -> TransportError (remote message kept)
- the call returns no payload -> EmptyResponseError
- anything else               -> payload returned untouched

Subscribers registered with on_failure() hear about every raised error before
it reaches the caller.
"""

import logging
from collections import Counter
from typing import Any, Callable, Optional, Protocol, Union

from pydantic import BaseModel, ConfigDict

from access_gate.errors import AccessGateError, EmptyResponseError, TransportError
from access_gate.models.envelope import ChatRequest, ChatRequestEnvelope

logger = logging.getLogger(__name__)

CHAT_ROUTER_FUNCTION = "ai-chat-router"
FAILURE_TITLE = "AI Request Failed"
FAILURE_FALLBACK = "Failed to send message"


class FunctionInvoker(Protocol):
    async def invoke(self, function: str, body: Optional[dict[str, Any]] = None) -> Any: ...


class FailureNotice(BaseModel):
    model_config = ConfigDict(frozen=True)

    title: str
    description: str
    variant: str = "destructive"
    request_id: Optional[str] = None


FailureHandler = Callable[[FailureNotice], None]


def _is_empty(payload: Any) -> bool:
    return payload is None or payload == ""


class ChatRequestDispatcher:
    def __init__(self, invoker: FunctionInvoker, function: str = CHAT_ROUTER_FUNCTION):
        self._invoker = invoker
        self._function = function
        self._active: Counter[str] = Counter()
        self._failure_handlers: list[FailureHandler] = []

    @property
    def in_flight(self) -> bool:
        return self.active_request_count > 0

    @property
    def active_request_count(self) -> int:
        return sum(self._active.values())

    def is_request_active(self, request_id: Optional[str] = None) -> bool:
        if request_id is None:
            return self.in_flight
        return self._active[request_id] > 0

    def on_failure(self, handler: FailureHandler) -> Callable[[], None]:
        """Subscribe to failure notices. Returns a cleanup function."""
        self._failure_handlers.append(handler)

        def remove() -> None:
            try:
                self._failure_handlers.remove(handler)
            except ValueError:
                pass
        return remove

    @staticmethod
    def build(request: Union[ChatRequest, dict[str, Any]]) -> ChatRequestEnvelope:
        """Fill conversation id, request id and timestamp for a fresh submission."""
        if isinstance(request, dict):
            request = ChatRequest.model_validate(request)
        return ChatRequestEnvelope.build(request)

    async def send(self, request: Union[ChatRequestEnvelope, ChatRequest, dict[str, Any]]) -> Any:
        """Dispatch one request. Passing an existing envelope retries it under the same request id."""
        envelope = request if isinstance(request, ChatRequestEnvelope) else self.build(request)
        request_id = envelope.request_id
        self._active[request_id] += 1
        logger.info(
            f"Dispatching {request_id} to {self._function} "
            f"(model={envelope.selected_model_id}, history={len(envelope.conversation_history)})"
        )
        try:
            try:
                payload = await self._invoker.invoke(self._function, envelope.to_body())
            except TransportError:
                raise
            except AccessGateError as e:
                raise TransportError(e.message) from e
            if _is_empty(payload):
                raise EmptyResponseError()
            logger.debug(f"Request {request_id} succeeded")
            return payload
        except (TransportError, EmptyResponseError) as e:
            logger.error(f"Request {request_id} failed: {e.message}")
            self._notify(FailureNotice(
                title=FAILURE_TITLE,
                description=e.message or FAILURE_FALLBACK,
                request_id=request_id,
            ))
            raise
        finally:
            self._active[request_id] -= 1
            if self._active[request_id] <= 0:
                del self._active[request_id]

    def _notify(self, notice: FailureNotice) -> None:
        for handler in list(self._failure_handlers):
            handler(notice)
