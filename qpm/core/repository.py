"""本地文件仓库

进程级、持久化到磁盘的包配置缓存:

  artifacts: id -> (version -> SharedPackageConfig)

生命周期:
  - read():  程序启动时从用户配置目录加载，不存在则为空
  - 运行期间在内存中修改
  - write(): 整体原子重写

多进程并发访问同一仓库文件时，用 transaction() 持有建议锁完成
读-改-写，否则后写者覆盖先写者。
"""

from __future__ import annotations

import contextlib
import fcntl
import json
import logging
from collections.abc import Iterator
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from qpm.core.artifact_cache import ArtifactCacheWriter
from qpm.core.exceptions import CacheCorruptionError, CacheWriteError, ValidationError
from qpm.core.models import SharedPackageConfig
from qpm.utils.file_io import load_json, save_json

logger = logging.getLogger(__name__)


def _default_path() -> Path:
    from qpm.core.config import get_config
    return Path(get_config().repository_file)


@contextlib.contextmanager
def repository_lock(path: str | Path | None = None) -> Iterator[None]:
    """在 <仓库文件>.lock 上持有排他建议锁"""
    target = Path(path) if path else _default_path()
    lock_file = target.with_name(target.name + ".lock")
    lock_file.parent.mkdir(parents=True, exist_ok=True)
    with open(lock_file, "a", encoding="utf-8") as f:
        fcntl.flock(f.fileno(), fcntl.LOCK_EX)
        try:
            yield
        finally:
            fcntl.flock(f.fileno(), fcntl.LOCK_UN)


@dataclass
class FileRepository:
    """本地包配置仓库"""

    artifacts: dict[str, dict[str, SharedPackageConfig]] = field(default_factory=dict)
    path: Path | None = field(default=None, compare=False, repr=False)

    # ------------------------------------------------------------------
    # 查询
    # ------------------------------------------------------------------

    def get_artifacts_from_id(self, package_id: str) -> dict[str, SharedPackageConfig] | None:
        return self.artifacts.get(package_id)

    def get_artifact(self, package_id: str, version: str) -> SharedPackageConfig | None:
        versions = self.artifacts.get(package_id)
        if versions is None:
            return None
        return versions.get(version)

    def list_ids(self) -> list[str]:
        return sorted(self.artifacts)

    # ------------------------------------------------------------------
    # 修改
    # ------------------------------------------------------------------

    def add_artifact(
        self,
        package: SharedPackageConfig,
        project_folder: str | Path | None = None,
        binary_path: str | Path | None = None,
        debug_binary_path: str | Path | None = None,
        *,
        cache_writer: ArtifactCacheWriter | None = None,
    ) -> None:
        """记录包配置；提供 binary_path 时先写入本地制品缓存

        缓存写入失败时异常直接抛出，仓库中不会留下该版本的条目。
        """
        if binary_path is not None:
            if project_folder is None:
                raise ValidationError("缓存二进制需要提供项目目录 project_folder")
            writer = cache_writer or ArtifactCacheWriter()
            writer.add_to_cache(package, project_folder, binary_path, debug_binary_path)

        versions = self.artifacts.setdefault(package.id, {})
        versions[package.version] = package
        logger.info("仓库已记录: %s@%s", package.id, package.version)

    def remove_artifact(self, package_id: str, version: str) -> bool:
        versions = self.artifacts.get(package_id)
        if versions is None or version not in versions:
            return False
        del versions[version]
        if not versions:
            del self.artifacts[package_id]
        return True

    # ------------------------------------------------------------------
    # 持久化
    # ------------------------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        return {
            "artifacts": {
                pid: {ver: pkg.to_dict() for ver, pkg in versions.items()}
                for pid, versions in self.artifacts.items()
            },
        }

    @classmethod
    def from_dict(cls, data: Any) -> FileRepository:
        if not isinstance(data, dict) or not isinstance(data.get("artifacts"), dict):
            raise ValidationError("仓库文档缺少 artifacts 对象")
        artifacts: dict[str, dict[str, SharedPackageConfig]] = {}
        for pid, versions in data["artifacts"].items():
            if not isinstance(versions, dict):
                raise ValidationError(f"仓库条目 {pid} 不是对象")
            artifacts[pid] = {
                ver: SharedPackageConfig.from_dict(pkg) for ver, pkg in versions.items()
            }
        return cls(artifacts=artifacts)

    @classmethod
    def read(cls, path: str | Path | None = None) -> FileRepository:
        """加载仓库文件，不存在时返回空仓库"""
        target = Path(path) if path else _default_path()
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise CacheWriteError(f"无法创建配置目录 {target.parent}: {e}") from e

        try:
            data = load_json(target)
        except json.JSONDecodeError as e:
            raise CacheCorruptionError(f"仓库文件不是有效 JSON: {target}: {e}") from e
        except ValueError as e:
            # 非 UTF-8 内容或文件超过大小上限
            raise CacheCorruptionError(f"仓库文件无法读取: {target}: {e}") from e
        if data is None:
            logger.debug("仓库文件不存在，使用空仓库: %s", target)
            repo = cls()
        else:
            try:
                repo = cls.from_dict(data)
            except (ValidationError, TypeError, AttributeError) as e:
                raise CacheCorruptionError(f"仓库文件内容无效: {target}: {e}") from e
        repo.path = target
        return repo

    def write(self, path: str | Path | None = None) -> Path:
        """整体原子重写仓库文件"""
        target = Path(path) if path else (self.path or _default_path())
        try:
            save_json(target, self.to_dict())
        except OSError as e:
            raise CacheWriteError(f"无法写入仓库文件 {target}: {e}") from e
        logger.info("仓库已保存: %s", target)
        return target

    @classmethod
    @contextlib.contextmanager
    def transaction(cls, path: str | Path | None = None) -> Iterator[FileRepository]:
        """持锁完成 读取 -> 修改 -> 写回；块内抛出异常时不写回"""
        target = Path(path) if path else _default_path()
        with repository_lock(target):
            repo = cls.read(target)
            yield repo
            repo.write(target)
