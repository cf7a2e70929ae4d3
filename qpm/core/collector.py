"""依赖收集器

从一个包声明的依赖出发，递归计算需要的全部具体包版本（传递闭包）。

算法（深度优先，无回溯）:
  1. 依赖 id 与当前包 id 相同（不区分大小写）时直接跳过
  2. 按解析器返回的顺序取第一个满足版本范围的版本，取不到即失败
  3. 从解析出的包的 restored_dependencies 中去掉 private 依赖
  4. 构造 SharedDependency，mod_link 缺失时继承包自身的值
  5. 以 (小写 id, 版本) 为键写入结果；同键再次出现时合并覆盖项，
     同 id 不同版本视为冲突
  6. 对包的（已过滤）restored_dependencies 继续递归，版本已固定

递归路径上记录正在解析的 id，遇到重复即判定为循环依赖。
"""

from __future__ import annotations

import dataclasses
import logging
from typing import TYPE_CHECKING

from qpm.core.exceptions import (
    DependencyCycleError,
    UnresolvedDependencyError,
    VersionConflictError,
)
from qpm.core.models import (
    Dependency,
    DependencyKey,
    ResolvedDependency,
    SharedDependency,
    SharedPackageConfig,
)
from qpm.core.semver import first_match

if TYPE_CHECKING:
    from qpm.core.models import PackageConfig
    from qpm.core.protocols import VersionResolver

logger = logging.getLogger(__name__)

Closure = dict[DependencyKey, ResolvedDependency]


class DependencyCollector:
    """递归依赖收集器，一个实例可复用于多次解析"""

    def __init__(self, resolver: VersionResolver) -> None:
        self.resolver = resolver

    def collect_all(self, config: PackageConfig) -> Closure:
        """收集一个包全部声明依赖的传递闭包"""
        accumulator: Closure = {}
        for dep in config.dependencies:
            self.collect(dep, config.info.id, accumulator)
        logger.info("依赖解析完成: %s 共 %d 个依赖", config.info.id, len(accumulator))
        return accumulator

    def collect(
        self,
        dependency: Dependency,
        owning_package_id: str,
        accumulator: Closure,
        resolving: list[str] | None = None,
    ) -> None:
        """按版本范围解析 dependency，并把结果及其传递依赖写入 accumulator"""
        if dependency.matches_id(owning_package_id):
            return
        path = self._enter(dependency.id, resolving)

        package = self._resolve(dependency)
        shared = SharedDependency(dependency=dependency.clone(), version=package.version)
        self._fold(shared, package, owning_package_id, accumulator, path)

    def _collect_pinned(
        self,
        restored: SharedDependency,
        owning_package_id: str,
        accumulator: Closure,
        resolving: list[str],
    ) -> None:
        """restored_dependencies 中的条目版本已固定，不再做范围匹配"""
        dependency = restored.dependency
        if dependency.matches_id(owning_package_id):
            return
        path = self._enter(dependency.id, resolving)

        package = self.resolver.get_shared_package(dependency.id, restored.version)
        shared = SharedDependency(dependency=dependency.clone(), version=restored.version)
        self._fold(shared, package, owning_package_id, accumulator, path)

    @staticmethod
    def _enter(dependency_id: str, resolving: list[str] | None) -> list[str]:
        path = list(resolving or [])
        if dependency_id.lower() in (p.lower() for p in path):
            raise DependencyCycleError(path + [dependency_id])
        path.append(dependency_id)
        return path

    def _resolve(self, dependency: Dependency) -> SharedPackageConfig:
        versions = self.resolver.get_versions(dependency.id)
        version = first_match(dependency.version_range, versions)
        if version is None:
            logger.error(
                "找不到满足范围的版本: %s (%s)，候选: %s",
                dependency.id, dependency.version_range, versions,
                extra={"package_id": dependency.id, "version_range": dependency.version_range},
            )
            raise UnresolvedDependencyError(dependency.id, dependency.version_range)
        return self.resolver.get_shared_package(dependency.id, version)

    def _fold(
        self,
        shared: SharedDependency,
        package: SharedPackageConfig,
        owning_package_id: str,
        accumulator: Closure,
        path: list[str],
    ) -> None:
        # 不修改解析器持有的对象
        package = dataclasses.replace(
            package, restored_dependencies=package.public_dependencies(),
        )

        extra = shared.dependency.additional_data
        if extra.mod_link is None:
            extra.mod_link = package.config.info.additional_data.mod_link

        key = shared.key
        for existing_key, existing in accumulator.items():
            if existing_key[0] == key[0] and existing_key[1] != key[1]:
                raise VersionConflictError(
                    shared.dependency.id, existing.dependency.version, shared.version,
                )

        existing = accumulator.get(key)
        if existing is not None:
            existing.dependency.dependency.additional_data.merge(extra)
            logger.debug("合并重复依赖: %s@%s", shared.dependency.id, shared.version)
            return

        logger.info(
            "已解析: %s (%s) -> %s",
            shared.dependency.id, shared.dependency.version_range, shared.version,
            extra={
                "package_id": shared.dependency.id,
                "version": shared.version,
                "version_range": shared.dependency.version_range,
            },
        )
        accumulator[key] = ResolvedDependency(dependency=shared, package=package)

        for restored in package.restored_dependencies:
            self._collect_pinned(restored, owning_package_id, accumulator, path)
