"""解析服务：串联包配置读取、依赖收集、本地仓库与制品缓存

  resolve():  读取项目 qpm.json，解析完整依赖闭包；整次解析成功后才写回仓库
  publish():  解析依赖后把本地构建登记到仓库并写入制品缓存
  查询:       list_ids / versions / get / remove
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from qpm.core.artifact_cache import ArtifactCacheWriter
from qpm.core.collector import Closure, DependencyCollector
from qpm.core.models import PackageConfig, SharedPackageConfig
from qpm.core.repository import FileRepository
from qpm.core.resolver import CachedResolver
from qpm.core.semver import sort_newest_first

if TYPE_CHECKING:
    from qpm.core.config import Config
    from qpm.core.protocols import VersionResolver

logger = logging.getLogger(__name__)


@dataclass
class ResolveResult:
    """一次解析的结果"""

    package: PackageConfig
    closure: Closure = field(default_factory=dict)

    def rows(self) -> list[dict[str, str]]:
        """按 id 排序的扁平列表，供 CLI / Web 展示"""
        rows = []
        for entry in sorted(self.closure.values(), key=lambda e: e.key):
            dep = entry.dependency.dependency
            rows.append({
                "id": dep.id,
                "range": dep.version_range,
                "version": entry.dependency.version,
                "private": "yes" if dep.additional_data.private else "",
            })
        return rows


class ResolveService:
    """依赖解析与本地缓存服务

    remote 为 None 时只使用本地仓库（离线）。
    """

    def __init__(
        self,
        config: Config | None = None,
        remote: VersionResolver | None = None,
    ) -> None:
        if config is None:
            from qpm.core.config import get_config
            config = get_config()
        self.config = config
        self._remote = remote

    def _collector(self, repo: FileRepository) -> DependencyCollector:
        resolver = CachedResolver(
            repo, self._remote, offline=self.config.offline,
        )
        return DependencyCollector(resolver)

    # ------------------------------------------------------------------
    # 解析
    # ------------------------------------------------------------------

    def resolve(self, project_folder: str | Path) -> ResolveResult:
        package = PackageConfig.read(project_folder)
        logger.info("开始解析: %s@%s", package.info.id, package.info.version)
        with FileRepository.transaction(self.config.repository_file) as repo:
            closure = self._collector(repo).collect_all(package)
        return ResolveResult(package=package, closure=closure)

    def publish(
        self,
        project_folder: str | Path,
        binary_path: str | Path | None = None,
        debug_binary_path: str | Path | None = None,
    ) -> SharedPackageConfig:
        """把本地项目登记为一个可被其他包依赖的版本"""
        package = PackageConfig.read(project_folder)
        writer = ArtifactCacheWriter(self.config.cache_dir)
        with FileRepository.transaction(self.config.repository_file) as repo:
            closure = self._collector(repo).collect_all(package)
            shared = SharedPackageConfig(
                config=package,
                restored_dependencies=[e.dependency for e in closure.values()],
            )
            repo.add_artifact(
                shared, project_folder, binary_path, debug_binary_path,
                cache_writer=writer,
            )
        logger.info("已发布到本地仓库: %s@%s", shared.id, shared.version)
        return shared

    # ------------------------------------------------------------------
    # 查询
    # ------------------------------------------------------------------

    def _repo(self) -> FileRepository:
        return FileRepository.read(self.config.repository_file)

    def list_ids(self) -> list[str]:
        return self._repo().list_ids()

    def versions(self, package_id: str) -> list[str] | None:
        versions = self._repo().get_artifacts_from_id(package_id)
        if versions is None:
            return None
        return sort_newest_first(list(versions))

    def get(self, package_id: str, version: str) -> SharedPackageConfig | None:
        return self._repo().get_artifact(package_id, version)

    def remove(self, package_id: str, version: str) -> bool:
        with FileRepository.transaction(self.config.repository_file) as repo:
            return repo.remove_artifact(package_id, version)
