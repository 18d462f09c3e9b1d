"""One-shot request handling.

Requests are a closed union discriminated on ``action``. The gateway
holds no state of its own; each request is forwarded to the store and
its outcome shaped into a ``GatewayResponse``.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal, Optional, Union, assert_never

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from ..util.log import Log
from .models import CommandResult
from .store import ConnectionStateStore

log = Log.create({"service": "gateway"})

INVALID_REQUEST = "invalid_request"


class ConfigPayload(BaseModel):
    """Carrier for config text. ``raw`` is type-checked by the parser."""
    model_config = ConfigDict(extra="ignore")

    raw: Any = None


class ConnectRequest(BaseModel):
    action: Literal["connect"]
    config: ConfigPayload


class DisconnectRequest(BaseModel):
    action: Literal["disconnect"]


class GetStatusRequest(BaseModel):
    action: Literal["getStatus"]


class SaveConfigRequest(BaseModel):
    action: Literal["saveConfig"]
    config: ConfigPayload


class GetConfigRequest(BaseModel):
    action: Literal["getConfig"]


GatewayRequest = Annotated[
    Union[
        ConnectRequest,
        DisconnectRequest,
        GetStatusRequest,
        SaveConfigRequest,
        GetConfigRequest,
    ],
    Field(discriminator="action"),
]

_request_adapter: TypeAdapter[GatewayRequest] = TypeAdapter(GatewayRequest)


class GatewayResponse(BaseModel):
    """Reply to a one-shot request.

    Only explicitly set fields go on the wire, so ``config`` appears as
    ``null`` for status/config queries and is absent elsewhere.
    """
    success: bool
    error: Optional[str] = None
    kind: Optional[str] = None
    connected: Optional[bool] = None
    config: Optional[str] = None

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(exclude_unset=True)

    @classmethod
    def from_result(cls, result: CommandResult) -> "GatewayResponse":
        if result.ok:
            return cls(success=True)
        failure = result.failure
        assert failure is not None
        return cls(success=False, error=failure.detail, kind=failure.kind.value)


def parse_request(message: Any) -> GatewayRequest:
    """Validate an inbound message. Raises pydantic ``ValidationError``."""
    return _request_adapter.validate_python(message)


def _describe_validation(error: ValidationError) -> str:
    first = error.errors()[0]
    location = ".".join(str(part) for part in first.get("loc", ()))
    return f"{location}: {first['msg']}" if location else first["msg"]


class RequestGateway:
    """Entry point for one-shot requests from any surface."""

    def __init__(self, store: ConnectionStateStore) -> None:
        self._store = store

    async def dispatch(self, message: Any) -> GatewayResponse:
        """Validate ``message`` and handle it."""
        try:
            request = parse_request(message)
        except ValidationError as e:
            detail = _describe_validation(e)
            log.warn("invalid request", {"error": detail})
            return GatewayResponse(
                success=False,
                error=f"Invalid request: {detail}",
                kind=INVALID_REQUEST,
            )
        return await self.handle(request)

    async def handle(self, request: GatewayRequest) -> GatewayResponse:
        log.debug("request", {"action": request.action})

        if isinstance(request, ConnectRequest):
            return GatewayResponse.from_result(await self._store.connect(request.config.raw))

        if isinstance(request, DisconnectRequest):
            await self._store.disconnect()
            return GatewayResponse(success=True)

        if isinstance(request, GetStatusRequest):
            snap = await self._store.current()
            return GatewayResponse(success=True, connected=snap.connected, config=snap.raw)

        if isinstance(request, SaveConfigRequest):
            return GatewayResponse.from_result(await self._store.apply_config(request.config.raw))

        if isinstance(request, GetConfigRequest):
            snap = await self._store.current()
            return GatewayResponse(success=True, config=snap.raw)

        assert_never(request)
