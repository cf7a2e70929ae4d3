"""本地制品缓存写入

把本地构建的包（源码快照 + 二进制）放入按版本区分的缓存目录:

  {cache_dir}/{id}/{version}/
    tmp/   写入进行中标记，写入完成后删除
    src/   共享目录 + qpm.json 的快照
    lib/   release 二进制，可选 debug_ 前缀的 debug 二进制

恢复策略:
  - tmp/ 存在说明上次写入中断，先删除
  - src/ 存在也删除，每次都是完整覆盖，不做增量缓存

写入完成后重新读取 src/qpm.json，版本与预期不一致时删除 src/ 并报错。
"""

from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import TYPE_CHECKING

from qpm.core.exceptions import CacheIntegrityError, CacheWriteError, ValidationError
from qpm.core.models import PACKAGE_FILE_NAME, PackageConfig
from qpm.core.semver import parse_version

if TYPE_CHECKING:
    from qpm.core.models import SharedPackageConfig

logger = logging.getLogger(__name__)


def _copy(src: Path, dst: Path) -> None:
    try:
        if src.is_dir():
            shutil.copytree(src, dst)
        else:
            dst.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(src, dst)
    except OSError as e:
        raise CacheWriteError(f"无法复制 {src} -> {dst}: {e}") from e


def _remove(path: Path) -> None:
    try:
        shutil.rmtree(path)
    except OSError as e:
        raise CacheWriteError(f"无法删除目录 {path}: {e}") from e


def _mkdir(path: Path) -> None:
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise CacheWriteError(f"无法创建目录 {path}: {e}") from e


def _check_segment(value: str, label: str) -> None:
    """id / 版本号会作为缓存目录名，不允许跳出 cache_dir"""
    if not value or value in (".", "..") or "/" in value or "\\" in value:
        raise ValidationError(f"{label}不能用作缓存目录名: {value!r}")


class ArtifactCacheWriter:
    """本地依赖缓存写入器"""

    def __init__(self, cache_dir: str = "") -> None:
        if not cache_dir:
            from qpm.core.config import get_config
            cache_dir = get_config().cache_dir
        self.cache_dir = Path(cache_dir)

    def version_path(self, package_id: str, version: str) -> Path:
        _check_segment(package_id, "包 id")
        _check_segment(version, "版本号")
        return self.cache_dir / package_id / version

    def add_to_cache(
        self,
        package: SharedPackageConfig,
        project_folder: str | Path,
        binary_path: str | Path | None = None,
        debug_binary_path: str | Path | None = None,
    ) -> Path:
        """缓存本地依赖，返回缓存根目录"""
        config = package.config
        logger.info("写入本地依赖缓存: %s %s", config.info.id, config.info.version)

        base = self.version_path(config.info.id, config.info.version)
        src_path = base / "src"
        lib_path = base / "lib"
        tmp_path = base / "tmp"
        project = Path(project_folder)

        if tmp_path.exists():
            logger.warning("发现未完成的缓存写入，清理: %s", tmp_path)
            _remove(tmp_path)
        if src_path.exists():
            _remove(src_path)

        _mkdir(tmp_path)
        _mkdir(src_path)

        _copy(project / config.shared_dir, src_path / config.shared_dir)
        _copy(project / PACKAGE_FILE_NAME, src_path / PACKAGE_FILE_NAME)
        # 版本不一致时二进制不能进入 lib/
        self._verify(package, src_path)

        if binary_path is not None:
            _mkdir(lib_path)
            _copy(Path(binary_path), lib_path / config.get_so_name())
        if debug_binary_path is not None:
            _mkdir(lib_path)
            _copy(Path(debug_binary_path), lib_path / config.get_debug_so_name())

        _remove(tmp_path)
        logger.info("缓存已写入: %s", base)
        return base

    @staticmethod
    def _verify(package: SharedPackageConfig, src_path: Path) -> None:
        """校验缓存快照中 qpm.json 的版本与预期一致"""
        expected = package.config.info.version
        try:
            staged = PackageConfig.read_path(src_path / PACKAGE_FILE_NAME)
            matches = parse_version(staged.info.version) == parse_version(expected)
        except ValidationError as e:
            _remove(src_path)
            raise CacheIntegrityError(f"缓存的包配置无法解析: {src_path}: {e}") from e

        if not matches:
            _remove(src_path)
            raise CacheIntegrityError(
                f"缓存的包 ({package.config.info.id}) 版本 ({staged.info.version}) "
                f"与预期版本 ({expected}) 不一致"
            )
