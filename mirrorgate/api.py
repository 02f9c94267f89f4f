"""
FastAPI 接口模块 - 重定向网关的 HTTP 入口
"""
import json
import logging

from fastapi import APIRouter, FastAPI, Request
from fastapi.responses import HTMLResponse, RedirectResponse, Response
from pydantic import BaseModel

from .config import get_config
from .router import route, REDIRECT, UNAVAILABLE
from .state import StateStore
from .status_page import render_status_page

api_router = APIRouter()

logger = logging.getLogger(__name__)

NO_SERVER_MESSAGE = "No server available to redirect"
REDIRECT_STATUSES = (301, 302, 307, 308)


class ErrorResponse(BaseModel):
    """错误响应"""
    status: int
    message: str


def _request_path(request: Request) -> str:
    # raw_path 保留客户端原始编码，测试客户端等场景下可能缺失
    raw_path = request.scope.get("raw_path")
    if raw_path:
        return raw_path.split(b"?", 1)[0].decode("latin-1")
    return request.url.path


@api_router.api_route("/{full_path:path}", methods=["GET", "HEAD"])
def gateway(request: Request):
    """重定向到可用实例，或返回状态页"""
    store: StateStore = request.app.state.store
    decision = route(_request_path(request), request.url.query, store)

    if decision.action == REDIRECT:
        return RedirectResponse(decision.location, status_code=request.app.state.redirect_status)

    if decision.action == UNAVAILABLE:
        body = ErrorResponse(status=400, message=NO_SERVER_MESSAGE)
        return Response(
            content=json.dumps(body.model_dump()),
            status_code=400,
            media_type="application/json"
        )

    return HTMLResponse(render_status_page(store.read_all(), store.catalog))


def create_app(store: StateStore = None, redirect_status: int = None):
    """创建 FastAPI 应用，每次调用返回独立的实例"""
    redirect_status = redirect_status or get_config().server.redirect_status
    if redirect_status not in REDIRECT_STATUSES:
        logger.warning(f"无效的重定向状态码 {redirect_status}，改用 302")
        redirect_status = 302

    app = FastAPI(
        title="mirrorgate",
        description="镜像服务重定向网关",
        version="1.0.0",
        docs_url=None,
        redoc_url=None,
        openapi_url=None
    )
    app.include_router(api_router)
    app.state.store = store if store is not None else StateStore()
    app.state.redirect_status = redirect_status
    return app
