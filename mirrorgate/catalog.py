"""
服务目录加载模块

目录文档是一个 JSON 数组:
    [{"type": "...", "test_url": "...", "fallback": "...", "instances": ["url", "url1|url2"]}]
"""
import json
import logging
from pathlib import Path
from typing import Any, List, Tuple

import requests
from pydantic import BaseModel, ValidationError

from .config import get_config
from .models import Catalog, ServiceDefinition, GROUP_SEPARATOR

logger = logging.getLogger(__name__)


class CatalogError(Exception):
    """服务目录获取或解析失败"""


class CatalogEntry(BaseModel):
    """目录文档中的单个服务条目"""
    type: str
    test_url: str = ""
    fallback: str = ""
    instances: List[str] = []


def parse_instance_group(raw: str) -> Tuple[str, ...]:
    """'url1|url2' -> ('url1', 'url2')，忽略空白项"""
    return tuple(url.strip() for url in raw.split(GROUP_SEPARATOR) if url.strip())


def parse_catalog(data: Any) -> Catalog:
    """把已解码的 JSON 文档转换为 Catalog"""
    if not isinstance(data, list):
        raise CatalogError(f"服务目录应为 JSON 数组，实际为 {type(data).__name__}")

    services = []
    for index, item in enumerate(data):
        try:
            entry = CatalogEntry.model_validate(item)
        except ValidationError as e:
            logger.warning(f"跳过无效的目录条目 #{index}: {e.error_count()} 个错误")
            continue

        if not entry.type:
            logger.warning(f"跳过无类型的目录条目 #{index}")
            continue

        groups = tuple(g for g in (parse_instance_group(raw) for raw in entry.instances) if g)
        services.append(ServiceDefinition(
            type=entry.type,
            test_path=entry.test_url,
            fallback_url=entry.fallback,
            instance_groups=groups
        ))

    catalog = Catalog(services)
    if len(catalog) < len(services):
        logger.warning(f"服务目录中存在重复类型，保留首次出现的 {len(catalog)} 个")
    return catalog


def _fetch_document(source: str, timeout: float) -> Any:
    if source.startswith(("http://", "https://")):
        try:
            response = requests.get(
                source,
                timeout=timeout,
                headers={"User-Agent": get_config().probe.user_agent}
            )
            response.raise_for_status()
            return response.json()
        except requests.RequestException as e:
            raise CatalogError(f"获取服务目录失败: {e}") from e
        except ValueError as e:
            raise CatalogError(f"服务目录不是有效的 JSON: {e}") from e

    try:
        with open(Path(source), 'r', encoding='utf-8') as f:
            return json.load(f)
    except OSError as e:
        raise CatalogError(f"读取服务目录文件失败: {e}") from e
    except ValueError as e:
        raise CatalogError(f"服务目录不是有效的 JSON: {e}") from e


def load_catalog(source: str = None, timeout: float = None) -> Catalog:
    """
    获取并解析服务目录

    source 为 http(s) 地址时通过 GET 获取，否则视为本地文件路径。
    任何传输、解码或结构错误都会抛出 CatalogError。
    """
    config = get_config()
    source = source or config.catalog.source_url
    timeout = timeout if timeout is not None else config.catalog.timeout_seconds

    logger.info(f"加载服务目录: {source}")
    catalog = parse_catalog(_fetch_document(source, timeout))
    logger.info(f"服务目录已加载，服务数量: {len(catalog)}")
    return catalog
