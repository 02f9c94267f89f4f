"""
状态页渲染 - 列出每个服务的实例组及其可用性
"""
from html import escape
from typing import Dict, Sequence

from .models import AvailabilityRecord, Catalog

AVAILABLE_COLOR = "green"
UNAVAILABLE_COLOR = "red"


def _render_record(record: AvailabilityRecord) -> str:
    color = AVAILABLE_COLOR if record.available else UNAVAILABLE_COLOR
    href = escape(record.base_url, quote=True)
    title = escape(f"检查时间 {record.checked_at:%Y-%m-%d %H:%M:%S}", quote=True)
    return f'- <a href="{href}" style="color:{color}" title="{title}">{escape(record.identifier)}</a>'


def render_status_page(snapshots: Dict[str, Sequence[AvailabilityRecord]], catalog: Catalog = None) -> str:
    """按服务类型名排序渲染，尚未探测的服务不显示"""
    sections = []
    for service_type in sorted(snapshots):
        lines = "<br/>".join(_render_record(record) for record in snapshots[service_type])
        section = f"<h3>{escape(service_type)}</h3>\n{lines}"

        service = catalog.get(service_type) if catalog is not None else None
        if service is not None and service.fallback_url:
            fallback = escape(service.fallback_url, quote=True)
            section += f'<br/>备用: <a href="{fallback}">{escape(service.fallback_url)}</a>'

        sections.append(section)

    if not sections:
        return "<p>尚无探测结果</p>"
    return "\n".join(sections)
