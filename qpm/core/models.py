"""核心数据模型

包配置文件（qpm.json）、已解析依赖、缓存仓库条目的数据类集中定义。
序列化统一使用 camelCase 键名，值为 None 的可选字段不写出。

元数据合并规则:
  - merge():         同一依赖出现多次时合并覆盖项
                     （分支/本地路径取先到者，额外文件累加，private 取或）
  - merge_package(): 把包自身声明的数据折叠进依赖视图
                     （static_linking 以包为准，mod_link 仅在缺失时补齐）
"""

from __future__ import annotations

import copy
import json
import logging
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

from qpm.core.exceptions import ValidationError

logger = logging.getLogger(__name__)

PACKAGE_FILE_NAME = "qpm.json"

# (小写 id, 已解析版本)，作为一次解析结果的去重键
DependencyKey = tuple[str, str]


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)


def _optional_to_dict(obj: Any, renames: dict[str, str] | None = None) -> dict[str, Any]:
    """可选字段数据类 -> dict，跳过 None"""
    renames = renames or {}
    result: dict[str, Any] = {}
    for f in fields(obj):
        value = getattr(obj, f.name)
        if value is None:
            continue
        key = renames.get(f.name, _camel(f.name))
        result[key] = list(value) if isinstance(value, list) else value
    return result


def _optional_from_dict(cls: type, data: dict[str, Any] | None,
                        renames: dict[str, str] | None = None) -> Any:
    renames = renames or {}
    data = data or {}
    kwargs: dict[str, Any] = {}
    for f in fields(cls):
        key = renames.get(f.name, _camel(f.name))
        if key in data and data[key] is not None:
            value = data[key]
            kwargs[f.name] = list(value) if isinstance(value, list) else value
    return cls(**kwargs)


def _require(data: dict[str, Any], key: str, where: str) -> Any:
    if key not in data:
        raise ValidationError(f"{where} 缺少字段 '{key}'")
    return data[key]


# =========================================================================
# 附加数据
# =========================================================================


@dataclass
class AdditionalPackageData:
    """包级别的附加数据"""

    headers_only: bool | None = None
    static_linking: bool | None = None
    so_link: str | None = None
    debug_so_link: str | None = None
    override_so_name: str | None = None
    mod_link: str | None = None
    branch_name: str | None = None
    extra_files: list[str] | None = None

    def to_dict(self) -> dict[str, Any]:
        return _optional_to_dict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> AdditionalPackageData:
        return _optional_from_dict(cls, data)


_DEPENDENCY_DATA_RENAMES = {"is_private": "private"}


@dataclass
class AdditionalDependencyData:
    """依赖声明的稀疏覆盖项，None 表示继承/默认值"""

    local_path: str | None = None          # 从本地路径复制，而非远程拉取
    headers_only: bool | None = None
    static_linking: bool | None = None
    use_release: bool | None = None        # 链接时使用 release 版二进制
    so_link: str | None = None
    debug_so_link: str | None = None
    override_so_name: str | None = None
    mod_link: str | None = None
    branch_name: str | None = None         # 仅在提供 GitHub 地址时生效
    extra_files: list[str] | None = None
    is_private: bool | None = None         # 不向依赖本包的使用方暴露

    def merge(self, other: AdditionalDependencyData) -> None:
        """合并同一依赖的另一份覆盖项（原地修改 self）

        仅处理 branch_name / extra_files / local_path / is_private，
        其余字段保持不变。
        """
        if self.branch_name is None and other.branch_name is not None:
            self.branch_name = other.branch_name

        if self.extra_files is not None and other.extra_files is not None:
            self.extra_files = self.extra_files + list(other.extra_files)
        elif self.extra_files is None and other.extra_files is not None:
            self.extra_files = list(other.extra_files)

        if self.local_path is None and other.local_path is not None:
            self.local_path = other.local_path

        if self.is_private is not None and other.is_private is not None:
            self.is_private = self.is_private or other.is_private
        elif self.is_private is None and other.is_private is not None:
            self.is_private = other.is_private

    def merge_package(self, package_data: AdditionalPackageData) -> None:
        """折叠包自身声明的数据：static_linking 以包为准，mod_link 仅补缺"""
        if package_data.static_linking is not None:
            self.static_linking = package_data.static_linking

        if self.mod_link is None:
            self.mod_link = package_data.mod_link

    @property
    def private(self) -> bool:
        return bool(self.is_private)

    def to_dict(self) -> dict[str, Any]:
        return _optional_to_dict(self, _DEPENDENCY_DATA_RENAMES)

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> AdditionalDependencyData:
        return _optional_from_dict(cls, data, _DEPENDENCY_DATA_RENAMES)


# =========================================================================
# 依赖
# =========================================================================


@dataclass
class Dependency:
    """声明的依赖：id + 版本范围 + 覆盖项"""

    id: str
    version_range: str
    additional_data: AdditionalDependencyData = field(
        default_factory=AdditionalDependencyData,
    )

    def matches_id(self, other_id: str) -> bool:
        return self.id.lower() == other_id.lower()

    def clone(self) -> Dependency:
        return copy.deepcopy(self)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "versionRange": self.version_range,
            "additionalData": self.additional_data.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Dependency:
        return cls(
            id=_require(data, "id", "依赖"),
            version_range=_require(data, "versionRange", "依赖"),
            additional_data=AdditionalDependencyData.from_dict(
                data.get("additionalData"),
            ),
        )


@dataclass
class SharedDependency:
    """绑定到具体版本的依赖"""

    dependency: Dependency
    version: str

    @property
    def key(self) -> DependencyKey:
        return (self.dependency.id.lower(), self.version)

    def to_dict(self) -> dict[str, Any]:
        return {"dependency": self.dependency.to_dict(), "version": self.version}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SharedDependency:
        return cls(
            dependency=Dependency.from_dict(_require(data, "dependency", "共享依赖")),
            version=_require(data, "version", "共享依赖"),
        )


# =========================================================================
# 包配置
# =========================================================================


@dataclass
class PackageMetadata:
    """包自身信息（qpm.json 的 info 段）"""

    id: str
    version: str
    name: str = ""
    url: str | None = None
    additional_data: AdditionalPackageData = field(
        default_factory=AdditionalPackageData,
    )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"name": self.name, "id": self.id, "version": self.version}
        if self.url is not None:
            data["url"] = self.url
        data["additionalData"] = self.additional_data.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PackageMetadata:
        return cls(
            id=_require(data, "id", "包信息"),
            version=_require(data, "version", "包信息"),
            name=data.get("name", ""),
            url=data.get("url"),
            additional_data=AdditionalPackageData.from_dict(data.get("additionalData")),
        )


@dataclass
class PackageConfig:
    """包配置文件 qpm.json"""

    info: PackageMetadata
    shared_dir: str = "shared"
    dependencies_dir: str = "extern"
    dependencies: list[Dependency] = field(default_factory=list)

    def get_so_name(self) -> str:
        """计算二进制文件名，override_so_name 优先"""
        extra = self.info.additional_data
        if extra.override_so_name:
            return extra.override_so_name
        suffix = "a" if extra.static_linking else "so"
        version = self.info.version.replace(".", "_")
        return f"lib{self.info.id}_{version}.{suffix}"

    def get_debug_so_name(self) -> str:
        return f"debug_{self.get_so_name()}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "sharedDir": self.shared_dir,
            "dependenciesDir": self.dependencies_dir,
            "info": self.info.to_dict(),
            "dependencies": [d.to_dict() for d in self.dependencies],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PackageConfig:
        return cls(
            info=PackageMetadata.from_dict(_require(data, "info", "包配置")),
            shared_dir=_require(data, "sharedDir", "包配置"),
            dependencies_dir=data.get("dependenciesDir", "extern"),
            dependencies=[Dependency.from_dict(d) for d in data.get("dependencies") or []],
        )

    @classmethod
    def read_path(cls, path: str | Path) -> PackageConfig:
        """读取指定路径的包配置文件"""
        p = Path(path)
        try:
            data = json.loads(p.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise ValidationError(f"包配置文件解析失败: {p}: {e}") from e
        except (OSError, UnicodeDecodeError) as e:
            raise ValidationError(f"无法读取包配置文件: {p}: {e}") from e
        if not isinstance(data, dict):
            raise ValidationError(f"包配置文件内容不是对象: {p}")
        return cls.from_dict(data)

    @classmethod
    def read(cls, project_folder: str | Path) -> PackageConfig:
        """读取项目根目录下的 qpm.json"""
        return cls.read_path(Path(project_folder) / PACKAGE_FILE_NAME)


@dataclass
class SharedPackageConfig:
    """某个具体版本的完整解析配置，含其已解析的传递依赖"""

    config: PackageConfig
    restored_dependencies: list[SharedDependency] = field(default_factory=list)

    @property
    def id(self) -> str:
        return self.config.info.id

    @property
    def version(self) -> str:
        return self.config.info.version

    def public_dependencies(self) -> list[SharedDependency]:
        """过滤掉标记为 private 的已解析依赖"""
        return [
            d for d in self.restored_dependencies
            if not d.dependency.additional_data.private
        ]

    def to_dict(self) -> dict[str, Any]:
        return {
            "config": self.config.to_dict(),
            "restoredDependencies": [d.to_dict() for d in self.restored_dependencies],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SharedPackageConfig:
        return cls(
            config=PackageConfig.from_dict(_require(data, "config", "共享包配置")),
            restored_dependencies=[
                SharedDependency.from_dict(d)
                for d in data.get("restoredDependencies") or []
            ],
        )


@dataclass
class ResolvedDependency:
    """一次解析结果中的条目：依赖视图 + 对应的包配置"""

    dependency: SharedDependency
    package: SharedPackageConfig

    @property
    def key(self) -> DependencyKey:
        return self.dependency.key
