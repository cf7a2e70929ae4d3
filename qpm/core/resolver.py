"""版本解析器实现

三种实现都满足 VersionResolver 协议:
  - QPackagesResolver: 远端包注册表（qpackages 风格 REST API）
  - CachedResolver:    本地 FileRepository 前置缓存 + 远端回退
  - InMemoryResolver:  内存字典，用于离线场景和测试

远端接口:
  GET {base}/{id}?limit=0     -> [{"id": ..., "version": ...}, ...]
  GET {base}/{id}/{version}   -> SharedPackageConfig JSON
"""

from __future__ import annotations

import json
import logging
import urllib.error
import urllib.request
from typing import TYPE_CHECKING, Any

from qpm.core.exceptions import RegistryError
from qpm.core.models import SharedPackageConfig
from qpm.core.semver import sort_newest_first
from qpm.utils.net import build_url, validate_url_scheme

if TYPE_CHECKING:
    from qpm.core.protocols import VersionResolver
    from qpm.core.repository import FileRepository

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 15


class QPackagesResolver:
    """远端包注册表客户端"""

    def __init__(self, api_url: str = "", timeout: int = 0) -> None:
        if not api_url or not timeout:
            from qpm.core.config import get_config
            cfg = get_config()
            api_url = api_url or cfg.qpackages_url
            timeout = timeout or cfg.request_timeout
        validate_url_scheme(api_url, context="qpackages api_url")
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout or DEFAULT_TIMEOUT

    def _get_json(self, url: str) -> Any:
        logger.debug("请求注册表: %s", url)
        try:
            with urllib.request.urlopen(url, timeout=self.timeout) as resp:  # nosec B310
                return json.loads(resp.read().decode("utf-8"))
        except urllib.error.HTTPError as e:
            raise RegistryError(f"注册表返回 HTTP {e.code}: {url}") from e
        except (urllib.error.URLError, OSError) as e:
            raise RegistryError(f"注册表请求失败: {url} - {e}") from e
        except json.JSONDecodeError as e:
            raise RegistryError(f"注册表响应不是有效 JSON: {url} - {e}") from e

    def get_versions(self, package_id: str) -> list[str]:
        url = build_url(self.api_url, package_id, query={"limit": "0"})
        data = self._get_json(url)
        if not isinstance(data, list):
            raise RegistryError(f"注册表版本列表格式错误: {url}")
        return [str(item["version"]) for item in data if isinstance(item, dict) and "version" in item]

    def get_shared_package(self, package_id: str, version: str) -> SharedPackageConfig:
        url = build_url(self.api_url, package_id, version)
        data = self._get_json(url)
        if not isinstance(data, dict):
            raise RegistryError(f"注册表包配置格式错误: {url}")
        return SharedPackageConfig.from_dict(data)


class CachedResolver:
    """以本地 FileRepository 作为远端解析器的前置缓存

    - 版本列表: 本地已缓存版本与远端版本合并，按从新到旧排序
    - 包配置:   本地命中直接返回，否则向远端查询并记录到仓库（仅内存，
                由调用方在整次解析成功后统一写盘）
    """

    def __init__(
        self,
        repository: FileRepository,
        remote: VersionResolver | None = None,
        *,
        offline: bool = False,
    ) -> None:
        self.repository = repository
        self.remote = remote
        self.offline = offline or remote is None

    def get_versions(self, package_id: str) -> list[str]:
        local = list((self.repository.get_artifacts_from_id(package_id) or {}).keys())
        if self.offline or self.remote is None:
            return sort_newest_first(local)
        remote = self.remote.get_versions(package_id)
        merged = list(dict.fromkeys(remote + local))
        return sort_newest_first(merged)

    def get_shared_package(self, package_id: str, version: str) -> SharedPackageConfig:
        cached = self.repository.get_artifact(package_id, version)
        if cached is not None:
            logger.debug("本地缓存命中: %s@%s", package_id, version)
            return cached
        if self.offline or self.remote is None:
            raise RegistryError(f"离线模式下本地没有缓存: {package_id}@{version}")
        package = self.remote.get_shared_package(package_id, version)
        self.repository.add_artifact(package)
        return package


class InMemoryResolver:
    """基于内存字典的解析器"""

    def __init__(self, packages: list[SharedPackageConfig] | None = None) -> None:
        self._packages: dict[str, dict[str, SharedPackageConfig]] = {}
        for p in packages or []:
            self.add(p)

    def add(self, package: SharedPackageConfig) -> None:
        self._packages.setdefault(package.id.lower(), {})[package.version] = package

    def get_versions(self, package_id: str) -> list[str]:
        return sort_newest_first(list(self._packages.get(package_id.lower(), {})))

    def get_shared_package(self, package_id: str, version: str) -> SharedPackageConfig:
        try:
            return self._packages[package_id.lower()][version]
        except KeyError:
            raise RegistryError(f"未知的包版本: {package_id}@{version}") from None
