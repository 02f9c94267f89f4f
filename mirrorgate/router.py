"""
路由决策模块

根据请求路径的第一段选择服务类型:
- 未知服务 / 根路径 -> 状态页
- 已知服务但无可用实例 -> 400
- 否则在可用实例组中均匀随机选择一个并重定向
"""
import random
import logging
from dataclasses import dataclass
from typing import Callable, Optional, Sequence, Tuple

from .models import AvailabilityRecord
from .state import StateStore

logger = logging.getLogger(__name__)

REDIRECT = "REDIRECT"
UNAVAILABLE = "UNAVAILABLE"
STATUS_PAGE = "STATUS_PAGE"


@dataclass(frozen=True)
class RouteDecision:
    action: str
    service_type: str = ""
    location: str = ""
    identifier: str = ""


def split_path(path: str) -> Tuple[str, str]:
    """
    '/search/a/b' -> ('search', '/a/b')
    '/search'     -> ('search', '')
    '/'           -> ('', '')
    """
    if path.startswith("/"):
        path = path[1:]
    first, sep, remainder = path.partition("/")
    return first, sep + remainder


def build_target(base_url: str, rest: str, query: str = "") -> str:
    """实例地址 + 剩余路径 + 原样的查询串"""
    target = base_url.rstrip("/") + rest if rest else base_url
    query = query.lstrip("?") if query else ""
    if query:
        target = f"{target}?{query}"
    return target


def route(path: str, query: str, store: StateStore,
          choice: Callable[[Sequence[AvailabilityRecord]], AvailabilityRecord] = random.choice) -> RouteDecision:
    service_type, rest = split_path(path)

    if not service_type or service_type not in store.catalog:
        return RouteDecision(STATUS_PAGE)

    records: Optional[Tuple[AvailabilityRecord, ...]] = store.read(service_type)
    available = [r for r in records or () if r.available]
    if not available:
        logger.warning(f"[{service_type}] 没有可用实例")
        return RouteDecision(UNAVAILABLE, service_type=service_type)

    chosen = choice(available)
    location = build_target(chosen.base_url, rest, query)
    logger.debug(f"[{service_type}] 重定向 -> {location}")
    return RouteDecision(REDIRECT, service_type=service_type, location=location, identifier=chosen.identifier)
