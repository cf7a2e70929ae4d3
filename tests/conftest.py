"""共享 fixture：包配置构造 + 隔离的用户配置目录"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable

import pytest

from qpm.core.models import (
    AdditionalDependencyData,
    AdditionalPackageData,
    Dependency,
    PackageConfig,
    PackageMetadata,
    SharedDependency,
    SharedPackageConfig,
)


def dep(pid: str, version_range: str, **extra: Any) -> Dependency:
    return Dependency(
        id=pid, version_range=version_range,
        additional_data=AdditionalDependencyData(**extra),
    )


def shared(pid: str, version: str, version_range: str = "", **extra: Any) -> SharedDependency:
    return SharedDependency(
        dependency=dep(pid, version_range or f"^{version}", **extra), version=version,
    )


def package(
    pid: str,
    version: str,
    *,
    dependencies: list[Dependency] | None = None,
    restored: list[SharedDependency] | None = None,
    **package_data: Any,
) -> SharedPackageConfig:
    return SharedPackageConfig(
        config=PackageConfig(
            info=PackageMetadata(
                id=pid, version=version, name=pid,
                additional_data=AdditionalPackageData(**package_data),
            ),
            dependencies=dependencies or [],
        ),
        restored_dependencies=restored or [],
    )


@pytest.fixture()
def make_dep() -> Callable[..., Dependency]:
    return dep


@pytest.fixture()
def make_shared() -> Callable[..., SharedDependency]:
    return shared


@pytest.fixture()
def make_package() -> Callable[..., SharedPackageConfig]:
    return package


@pytest.fixture()
def write_project(tmp_path: Path) -> Callable[..., Path]:
    """在 tmp_path/<id> 下生成一个本地项目：qpm.json + shared/ 头文件"""

    def _write(pid: str, version: str, dependencies: list[Dependency] | None = None,
               declared_version: str = "") -> Path:
        root = tmp_path / "projects" / pid
        (root / "shared").mkdir(parents=True)
        (root / "shared" / f"{pid}.hpp").write_text("#pragma once\n", encoding="utf-8")
        cfg = PackageConfig(
            info=PackageMetadata(id=pid, version=declared_version or version, name=pid),
            dependencies=dependencies or [],
        )
        (root / "qpm.json").write_text(json.dumps(cfg.to_dict(), indent=2), encoding="utf-8")
        return root

    return _write


@pytest.fixture()
def qpm_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    """隔离的用户配置目录，全局配置和服务容器在前后都重置"""
    import qpm.core.config as cfgmod
    from qpm.services.container import reset_container

    home = tmp_path / "qpm-home"
    monkeypatch.setenv("QPM_CONFIG_DIR", str(home))
    monkeypatch.delenv("QPM_CACHE_DIR", raising=False)
    cfg = cfgmod.Config(offline=True)
    monkeypatch.setattr(cfgmod, "_current", cfg)
    reset_container()
    yield cfg
    reset_container()
