#!/usr/bin/env python3
"""
pytest 配置文件

提供共享的 fixtures 和配置
"""
import sys
import pytest
from pathlib import Path
from unittest.mock import MagicMock

import requests

# 添加项目路径
sys.path.insert(0, str(Path(__file__).parent.parent.parent))


@pytest.fixture(autouse=True)
def reset_config(monkeypatch):
    """每个测试前重置配置"""
    import mirrorgate.config as config_module
    monkeypatch.delenv("PORT", raising=False)
    config_module._config = None
    yield
    config_module._config = None


@pytest.fixture
def catalog_document():
    """示例服务目录文档"""
    return [
        {
            "type": "search",
            "test_url": "/search?q=test",
            "fallback": "https://search.fallback.example",
            "instances": ["https://a.example|https://a-mirror.example", "https://b.example"]
        },
        {
            "type": "video",
            "test_url": "/",
            "fallback": "",
            "instances": ["https://v1.example", "https://v2.example", "https://v3.example"]
        }
    ]


@pytest.fixture
def catalog(catalog_document):
    from mirrorgate.catalog import parse_catalog
    return parse_catalog(catalog_document)


@pytest.fixture
def store(catalog):
    from mirrorgate.state import StateStore
    return StateStore(catalog)


@pytest.fixture
def fake_head():
    """
    构造 requests.head 的替身

    outcomes: {实例地址: 状态码 或 异常}，未列出的地址返回 200
    """
    def factory(outcomes):
        calls = []

        def head(url, **kwargs):
            calls.append(url)
            for base, outcome in outcomes.items():
                if url.startswith(base.rstrip("/") + "/"):
                    if isinstance(outcome, Exception):
                        raise outcome
                    return MagicMock(status_code=outcome)
            return MagicMock(status_code=200)

        head.calls = calls
        return head

    return factory


@pytest.fixture
def connection_error():
    return requests.ConnectionError("connection refused")
