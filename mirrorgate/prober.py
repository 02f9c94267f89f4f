"""
可用性探测模块

每个服务一个并发任务，任务内按顺序检查各实例组的每个 URL。
实例组内所有 URL 都探测成功才算可用，遇到第一个失败即停止该组的检查。
"""
import time
import logging
from datetime import datetime
from threading import BoundedSemaphore
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Dict, Tuple
from urllib.parse import urljoin

import requests
from urllib3.util import Timeout

from .config import get_config
from .models import AvailabilityRecord, Catalog, ServiceDefinition
from .state import StateStore, Records

logger = logging.getLogger(__name__)

REDIRECT_CODES = (301, 302, 303, 307, 308)


def build_probe_url(base_url: str, test_path: str) -> str:
    """<subURL>/<testPath>，连接处只保留一个斜杠"""
    return f"{base_url.rstrip('/')}/{test_path.lstrip('/')}"


class Prober:
    """实例可用性探测器"""

    def __init__(self, store: StateStore, timeout: float = None,
                 max_concurrent_requests: int = None, user_agent: str = None, max_redirects: int = None):
        config = get_config()
        self.store = store
        self.timeout = timeout if timeout is not None else config.probe.timeout_seconds
        self.max_concurrent_requests = max_concurrent_requests or config.probe.max_concurrent_requests
        self.user_agent = user_agent or config.probe.user_agent
        self.max_redirects = max_redirects if max_redirects is not None else config.probe.max_redirects
        # 所有服务任务共享，限制同时在途的探测请求数
        self.semaphore = BoundedSemaphore(self.max_concurrent_requests)

    def probe_url(self, url: str) -> bool:
        """
        HEAD 请求成功且最终状态码不是 5xx 即视为可用

        整个探测（含所有重定向跳转）共用一个截止时间，
        urllib3 的 total 超时同时限制连接和读取。
        """
        deadline = time.monotonic() + self.timeout
        with self.semaphore:
            for _ in range(self.max_redirects + 1):
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    logger.debug(f"探测超时 {url}")
                    return False
                try:
                    response = requests.head(
                        url,
                        timeout=Timeout(total=remaining),
                        allow_redirects=False,
                        headers={"User-Agent": self.user_agent}
                    )
                except requests.RequestException as e:
                    logger.debug(f"探测失败 {url}: {e}")
                    return False

                location = response.headers.get("Location") if response.status_code in REDIRECT_CODES else None
                if not location:
                    break
                url = urljoin(url, location)
            else:
                logger.debug(f"探测失败 {url}: 重定向超过 {self.max_redirects} 次")
                return False

        if response.status_code >= 500:
            logger.debug(f"探测失败 {url}: HTTP {response.status_code}")
            return False
        return True

    def check_group(self, service: ServiceDefinition, group: Tuple[str, ...]) -> bool:
        for url in group:
            if not self.probe_url(build_probe_url(url, service.test_path)):
                return False
        return True

    def probe_service(self, service: ServiceDefinition) -> Records:
        """探测一个服务的全部实例组，并把结果整体写入状态存储"""
        records = []
        for identifier, group in zip(service.group_identifiers, service.instance_groups):
            available = self.check_group(service, group)
            records.append(AvailabilityRecord(
                identifier=identifier,
                available=available,
                checked_at=datetime.now()
            ))

        records = tuple(records)
        available_count = sum(1 for r in records if r.available)
        logger.info(f"[{service.type}] 可用: {available_count}/{len(records)}")

        self.store.replace(service.type, records)
        return records

    def probe_catalog(self, catalog: Catalog) -> Dict[str, Records]:
        """
        并发探测目录中的所有服务，所有服务任务结束后返回

        单个服务任务异常只影响该服务（保留其旧快照），不影响其他服务。
        """
        if len(catalog) == 0:
            logger.warning("服务目录为空，跳过探测")
            return {}

        logger.info(f"开始探测服务，服务数量: {len(catalog)}")
        started = time.monotonic()
        results: Dict[str, Records] = {}

        with ThreadPoolExecutor(max_workers=len(catalog), thread_name_prefix="Prober") as pool:
            futures = {pool.submit(self.probe_service, service): service for service in catalog}
            for future in as_completed(futures):
                service = futures[future]
                try:
                    results[service.type] = future.result()
                except Exception as e:
                    logger.error(f"[{service.type}] 探测任务异常: {e}")

        logger.info(f"探测完成，耗时 {time.monotonic() - started:.1f} 秒")
        return results
