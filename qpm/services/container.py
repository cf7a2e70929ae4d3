"""服务容器：CLI 和 Web 层统一从这里获取服务，而非直接构造

依赖关系:
  resolve → remote（离线模式下为 None，只使用本地仓库）

用法:
    from qpm.services.container import get_container
    result = get_container().resolve.resolve("path/to/project")

    # 显式注入配置 / 远端解析器（测试、批处理）
    container = ServiceContainer(config=Config(config_dir="/tmp/qpm"), remote=InMemoryResolver())
"""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from qpm.core.config import Config
    from qpm.core.protocols import VersionResolver
    from qpm.services.resolve_service import ResolveService


class ServiceContainer:
    """按配置懒加载远端解析器和解析服务，同一容器内共享实例"""

    def __init__(self, config: Config | None = None, remote: VersionResolver | None = None) -> None:
        if config is None:
            from qpm.core.config import get_config
            config = get_config()
        self._config = config
        self._remote = remote
        self._resolve: ResolveService | None = None

    @property
    def config(self) -> Config:
        return self._config

    @property
    def remote(self) -> VersionResolver | None:
        if self._config.offline:
            return None
        if self._remote is None:
            from qpm.core.resolver import QPackagesResolver
            self._remote = QPackagesResolver(
                api_url=self._config.qpackages_url,
                timeout=self._config.request_timeout,
            )
        return self._remote

    @property
    def resolve(self) -> ResolveService:
        if self._resolve is None:
            from qpm.services.resolve_service import ResolveService
            self._resolve = ResolveService(config=self._config, remote=self.remote)
        return self._resolve


_global: ServiceContainer | None = None
_global_lock = threading.Lock()


def get_container() -> ServiceContainer:
    """获取全局容器（线程安全，gunicorn gthread worker 下共享）"""
    global _global  # noqa: PLW0603
    if _global is None:
        with _global_lock:
            if _global is None:
                _global = ServiceContainer()
    return _global


def reset_container() -> None:
    """丢弃全局容器，下次 get_container() 按当前配置重建"""
    global _global  # noqa: PLW0603
    with _global_lock:
        _global = None
