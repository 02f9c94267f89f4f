"""
mirrorgate - 主入口
加载服务目录，启动后台探测调度和 HTTP 重定向服务
"""
import sys
import signal
import logging
import argparse
from pathlib import Path

import uvicorn

from .config import init_config
from .catalog import CatalogError
from .state import StateStore
from .scheduler import RefreshScheduler
from .api import create_app


LOG_FORMAT = '%(asctime)s [%(threadName)s] %(name)s %(levelname)s: %(message)s'

# 每轮探测会产生大量连接日志
NOISY_LOGGERS = ("urllib3", "requests")


def setup_logging(log_level: str = "INFO", log_file: str = None) -> logging.Logger:
    """
    配置网关日志

    探测在线程池中运行，格式中带线程名便于区分；重复调用会替换已有的处理器。
    """
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    handlers = [logging.StreamHandler(sys.stdout)]
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, encoding='utf-8'))

    logging.basicConfig(level=level, format=LOG_FORMAT, handlers=handlers, force=True)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    return logging.getLogger("mirrorgate")


def main():
    """主入口函数"""
    parser = argparse.ArgumentParser(description='mirrorgate - 镜像服务重定向网关')
    parser.add_argument('--config-dir', type=str, help='配置文件目录')
    parser.add_argument('--host', type=str, help='HTTP 服务监听地址')
    parser.add_argument('--port', type=int, help='HTTP 服务监听端口（默认读取 PORT 环境变量）')
    parser.add_argument('--log-level', type=str, help='日志级别')

    args = parser.parse_args()

    config = init_config(args.config_dir)
    host = args.host or config.server.host
    port = args.port or config.server.port
    log_level = args.log_level or config.system.log_level

    setup_logging(log_level=log_level, log_file=config.system.log_file or None)

    logger = logging.getLogger(__name__)
    logger.info("=" * 50)
    logger.info("mirrorgate 启动中...")
    logger.info("=" * 50)

    store = StateStore()
    scheduler = RefreshScheduler(store)

    try:
        scheduler.start()
    except CatalogError as e:
        logger.error(f"首次加载服务目录失败，退出: {e}")
        sys.exit(1)

    for service in store.catalog:
        logger.info(f"  - {service.type}: {len(service.instance_groups)} 个实例组")

    def signal_handler(signum, frame):
        logger.info("收到退出信号，正在关闭...")
        scheduler.stop()
        sys.exit(0)

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    app = create_app(store)
    logger.info(f"HTTP 服务启动: http://{host}:{port}")

    uvicorn.run(
        app,
        host=host,
        port=port,
        log_level=log_level.lower()
    )
    scheduler.stop()


if __name__ == "__main__":
    main()
