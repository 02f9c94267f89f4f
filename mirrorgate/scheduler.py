"""
刷新调度模块 - 周期性重新加载服务目录并重新探测
"""
import logging
from threading import Thread, Event
from typing import Callable, List

from .config import get_config
from .catalog import CatalogError, load_catalog
from .models import Catalog
from .prober import Prober
from .state import StateStore

logger = logging.getLogger(__name__)


class RefreshScheduler:
    """刷新调度器"""

    def __init__(self, store: StateStore, prober: Prober = None,
                 loader: Callable[[], Catalog] = load_catalog, interval: float = None):
        self.config = get_config()
        self.store = store
        self.prober = prober or Prober(store)
        self.loader = loader
        self.interval = interval if interval is not None else self.config.scheduler.refresh_interval_seconds
        self.stop_event = Event()
        self.first_cycle_done = Event()
        self.threads: List[Thread] = []
        self.cycle_count = 0

    def start(self):
        """
        启动调度

        首次目录加载在调用线程中同步完成，失败时直接抛出 CatalogError；
        首次探测及之后的周期刷新在后台线程中进行。
        """
        logger.info("启动刷新调度...")
        self.store.install_catalog(self.loader())

        refresh_thread = Thread(target=self._refresh_loop, name="RefreshScheduler", daemon=True)
        refresh_thread.start()
        self.threads.append(refresh_thread)

        logger.info(f"刷新调度已启动，间隔 {self.interval} 秒")

    def stop(self):
        """停止调度"""
        logger.info("停止刷新调度...")
        # 正在进行的探测不会被中断，join 超时后直接返回
        self.stop_event.set()
        for thread in self.threads:
            thread.join(timeout=5)
        logger.info("刷新调度已停止")

    def _refresh_loop(self):
        """定时刷新"""
        # 首个周期直接探测 start() 中加载的目录
        reload_catalog = False

        while not self.stop_event.is_set():
            try:
                self.refresh(reload_catalog=reload_catalog)
            except Exception as e:
                logger.error(f"刷新周期异常: {e}")

            reload_catalog = True
            self.first_cycle_done.set()
            self.stop_event.wait(self.interval)

    def refresh(self, reload_catalog: bool = True) -> bool:
        """
        执行一个刷新周期: 重新加载目录 + 探测全部服务

        目录加载失败时保留上一版本的目录和快照，返回 False，
        下一个周期无条件重试。
        """
        if reload_catalog:
            try:
                catalog = self.loader()
            except CatalogError as e:
                logger.error(f"服务目录重新加载失败，保留上一版本: {e}")
                return False
            # 先按新目录探测，目录与结果一起生效，期间旧快照继续服务
            results = self.prober.probe_catalog(catalog)
            self.store.install_catalog(catalog, results)
        else:
            self.prober.probe_catalog(self.store.catalog)

        self.cycle_count += 1
        logger.info(f"刷新周期 #{self.cycle_count} 完成")
        return True
