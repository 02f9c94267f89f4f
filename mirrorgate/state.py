"""
状态存储模块 - 保存每个服务类型当前的可用性快照

写入方是每个服务各自的探测任务，读取方是 HTTP 路由。
每个服务的记录列表先完整构建为 tuple，再在锁内一次性替换引用，
读取方只会看到完整的旧快照或完整的新快照。
"""
import logging
from threading import Lock
from typing import Dict, Iterable, Optional, Tuple

from .models import AvailabilityRecord, Catalog

logger = logging.getLogger(__name__)

Records = Tuple[AvailabilityRecord, ...]


class StateStore:
    """线程安全的内存状态表: 服务类型 -> 可用性记录"""

    def __init__(self, catalog: Catalog = None):
        self.lock = Lock()
        self._snapshots: Dict[str, Records] = {}
        self._catalog = catalog if catalog is not None else Catalog()

    @property
    def catalog(self) -> Catalog:
        """当前服务目录"""
        with self.lock:
            return self._catalog

    def install_catalog(self, catalog: Catalog, snapshots: Dict[str, Iterable[AvailabilityRecord]] = None):
        """
        替换服务目录，可同时写入按新目录探测得到的快照

        目录和快照在同一次加锁中生效。之后清理仍与新目录不一致的快照
        （服务已移除，或实例组发生变化且没有新结果），
        保证每条记录都对应当前目录中的一个实例组。
        """
        with self.lock:
            self._catalog = catalog
            for service_type, records in (snapshots or {}).items():
                records = tuple(records)
                if self._matches(catalog, service_type, records):
                    self._snapshots[service_type] = records
            stale = [
                service_type for service_type, records in self._snapshots.items()
                if not self._matches(catalog, service_type, records)
            ]
            for service_type in stale:
                del self._snapshots[service_type]

        if stale:
            logger.info(f"目录更新，清理过期快照: {', '.join(sorted(stale))}")

    def replace(self, service_type: str, records: Iterable[AvailabilityRecord]) -> bool:
        """
        原子替换某个服务的记录列表

        记录与当前目录不一致时（新目录尚未生效，或探测期间目录已更新）丢弃并返回 False，
        由 install_catalog 随新目录一起写入。
        """
        records = tuple(records)
        with self.lock:
            if not self._matches(self._catalog, service_type, records):
                logger.debug(f"[{service_type}] 探测结果与当前目录不一致，丢弃")
                return False
            self._snapshots[service_type] = records
        return True

    def read(self, service_type: str) -> Optional[Records]:
        """读取某个服务的最新快照，未探测过或未知服务返回 None"""
        with self.lock:
            return self._snapshots.get(service_type)

    def read_all(self) -> Dict[str, Records]:
        """返回所有服务快照的浅拷贝（不同服务可能来自不同刷新周期）"""
        with self.lock:
            return dict(self._snapshots)

    @staticmethod
    def _matches(catalog: Catalog, service_type: str, records: Records) -> bool:
        service = catalog.get(service_type)
        if service is None:
            return False
        return tuple(r.identifier for r in records) == service.group_identifiers
