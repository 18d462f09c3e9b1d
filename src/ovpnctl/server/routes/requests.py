"""One-shot request routes.

``POST /v1/requests`` takes any gateway message. The per-action routes
build the same message from their path and body and hand it to the same
gateway, so both shapes behave identically.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends
from fastapi.responses import JSONResponse

from ...ovpn import describe
from ...runtime import AppContext
from ..deps import resolve_app_context
from ..schemas import ConfigBody, ConfigDetailsResponse, GatewayReply, ProxySettingsResponse

router = APIRouter(prefix="/v1", tags=["connection"])


async def _dispatch(ctx: AppContext, message: Any) -> JSONResponse:
    response = await ctx.gateway.dispatch(message)
    return JSONResponse(response.to_wire())


def _with_config(action: str, body: ConfigBody | None) -> dict[str, Any]:
    message: dict[str, Any] = {"action": action}
    if body is not None and body.config is not None:
        message["config"] = body.config.model_dump()
    return message


@router.post("/requests", response_model=GatewayReply)
async def post_request(
    message: Any = Body(...),
    ctx: AppContext = Depends(resolve_app_context),
) -> JSONResponse:
    return await _dispatch(ctx, message)


@router.post("/connect", response_model=GatewayReply)
async def connect(
    body: ConfigBody | None = Body(default=None),
    ctx: AppContext = Depends(resolve_app_context),
) -> JSONResponse:
    return await _dispatch(ctx, _with_config("connect", body))


@router.post("/disconnect", response_model=GatewayReply)
async def disconnect(ctx: AppContext = Depends(resolve_app_context)) -> JSONResponse:
    return await _dispatch(ctx, {"action": "disconnect"})


@router.get("/status", response_model=GatewayReply)
async def status(ctx: AppContext = Depends(resolve_app_context)) -> JSONResponse:
    return await _dispatch(ctx, {"action": "getStatus"})


@router.put("/config", response_model=GatewayReply)
async def save_config(
    body: ConfigBody | None = Body(default=None),
    ctx: AppContext = Depends(resolve_app_context),
) -> JSONResponse:
    return await _dispatch(ctx, _with_config("saveConfig", body))


@router.get("/config", response_model=GatewayReply)
async def get_config(ctx: AppContext = Depends(resolve_app_context)) -> JSONResponse:
    return await _dispatch(ctx, {"action": "getConfig"})


@router.get("/config/details", response_model=ConfigDetailsResponse)
async def config_details(ctx: AppContext = Depends(resolve_app_context)) -> ConfigDetailsResponse:
    snap = ctx.store.snapshot()
    if snap.config is None:
        return ConfigDetailsResponse(configured=False, connected=snap.connected)

    active = ctx.tunnel.active
    proxy = None
    if active is not None:
        proxy = ProxySettingsResponse(
            scheme=active.scheme,
            host=active.host,
            port=active.port,
            bypass=list(active.bypass),
        )
    return ConfigDetailsResponse(
        configured=True,
        connected=snap.connected,
        details=describe(snap.config),
        proxy=proxy,
    )
