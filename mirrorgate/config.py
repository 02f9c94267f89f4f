"""
配置加载模块
"""
import os
import yaml
from pathlib import Path
from dataclasses import dataclass

DEFAULT_CATALOG_URL = "https://raw.githubusercontent.com/benbusby/farside/main/services-full.json"


@dataclass
class CatalogConfig:
    source_url: str = DEFAULT_CATALOG_URL  # 也可以是本地 JSON 文件路径
    timeout_seconds: int = 10


@dataclass
class ProbeConfig:
    timeout_seconds: float = 3
    max_concurrent_requests: int = 32  # 全局同时进行的探测请求上限
    max_redirects: int = 5
    user_agent: str = "mirrorgate/1.0"


@dataclass
class SchedulerConfig:
    refresh_interval_seconds: int = 300


@dataclass
class ServerConfig:
    host: str = "0.0.0.0"
    port: int = 3000
    redirect_status: int = 302


@dataclass
class SystemConfig:
    log_level: str = "INFO"
    log_file: str = ""


class Config:
    """全局配置类"""

    def __init__(self, config_dir: str = None):
        if config_dir is None:
            # 默认配置目录
            config_dir = Path(__file__).parent.parent / "config"

        self.config_dir = Path(config_dir)
        self.catalog = CatalogConfig()
        self.probe = ProbeConfig()
        self.scheduler = SchedulerConfig()
        self.server = ServerConfig()
        self.system = SystemConfig()

        self._load_config()
        self._apply_env_overrides()

    def _load_config(self):
        """加载主配置文件"""
        config_file = self.config_dir / "config.yml"
        if not config_file.exists():
            print(f"警告: 配置文件不存在 {config_file}，使用默认配置")
            return

        with open(config_file, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f) or {}

        # 服务目录
        catalog_cfg = data.get('catalog', {})
        self.catalog.source_url = self._resolve_env(catalog_cfg.get('source_url', DEFAULT_CATALOG_URL))
        self.catalog.timeout_seconds = catalog_cfg.get('timeout_seconds', 10)

        # 探测配置
        probe_cfg = data.get('probe', {})
        self.probe.timeout_seconds = probe_cfg.get('timeout_seconds', 3)
        self.probe.max_concurrent_requests = probe_cfg.get('max_concurrent_requests', 32)
        self.probe.max_redirects = probe_cfg.get('max_redirects', 5)
        self.probe.user_agent = probe_cfg.get('user_agent', 'mirrorgate/1.0')

        # 刷新周期
        sched_cfg = data.get('scheduler', {})
        self.scheduler.refresh_interval_seconds = sched_cfg.get('refresh_interval_seconds', 300)

        # HTTP 服务
        server_cfg = data.get('server', {})
        self.server.host = server_cfg.get('host', '0.0.0.0')
        self.server.port = server_cfg.get('port', 3000)
        self.server.redirect_status = server_cfg.get('redirect_status', 302)

        # 系统配置
        sys_cfg = data.get('system', {})
        self.system.log_level = sys_cfg.get('log_level', 'INFO')
        self.system.log_file = sys_cfg.get('log_file', '')

    def _apply_env_overrides(self):
        """PORT 环境变量覆盖监听端口"""
        port = os.environ.get('PORT', '').strip()
        if not port:
            return
        try:
            self.server.port = int(port)
        except ValueError:
            print(f"警告: PORT 环境变量无效 {port!r}，使用 {self.server.port}")

    def _resolve_env(self, value: str) -> str:
        """解析环境变量 ${VAR_NAME}"""
        if not value or not isinstance(value, str):
            return value

        if value.startswith('${') and value.endswith('}'):
            env_name = value[2:-1]
            return os.environ.get(env_name, '')

        return value


# 全局配置实例
_config: Config = None


def get_config() -> Config:
    """获取全局配置"""
    global _config
    if _config is None:
        _config = Config()
    return _config


def init_config(config_dir: str = None):
    """初始化配置"""
    global _config
    _config = Config(config_dir)
    return _config
