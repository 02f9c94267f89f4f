"""
数据模型 - 服务定义、可用性记录、服务目录
"""
from datetime import datetime
from typing import Dict, Iterable, Optional, Tuple
from dataclasses import dataclass, field

# 实例组内多个 URL 的分隔符
GROUP_SEPARATOR = "|"


@dataclass(frozen=True)
class ServiceDefinition:
    """单个服务类型的静态描述"""
    type: str
    test_path: str = ""
    fallback_url: str = ""
    # 每个实例组是一个或多个互为备用的 URL
    instance_groups: Tuple[Tuple[str, ...], ...] = ()

    @property
    def group_identifiers(self) -> Tuple[str, ...]:
        return tuple(GROUP_SEPARATOR.join(group) for group in self.instance_groups)


@dataclass(frozen=True)
class AvailabilityRecord:
    """实例组可用性记录（一组一条）"""
    identifier: str
    available: bool
    checked_at: datetime = field(default_factory=datetime.now)

    @property
    def urls(self) -> Tuple[str, ...]:
        return tuple(self.identifier.split(GROUP_SEPARATOR))

    @property
    def base_url(self) -> str:
        """重定向使用组内第一个 URL"""
        return self.urls[0]


class Catalog:
    """
    服务目录 - 不可变，每次重新加载整体替换

    保持目录文档中的顺序，同名服务只保留第一个。
    """

    def __init__(self, services: Iterable[ServiceDefinition] = ()):
        by_type: Dict[str, ServiceDefinition] = {}
        for service in services:
            by_type.setdefault(service.type, service)
        self._by_type = by_type
        self.services: Tuple[ServiceDefinition, ...] = tuple(by_type.values())

    def get(self, service_type: str) -> Optional[ServiceDefinition]:
        return self._by_type.get(service_type)

    def __contains__(self, service_type: str) -> bool:
        return service_type in self._by_type

    def __iter__(self):
        return iter(self.services)

    def __len__(self) -> int:
        return len(self.services)

    @property
    def types(self) -> Tuple[str, ...]:
        return tuple(self._by_type)
