"""领域协议定义

使用 typing.Protocol 而非 ABC，远端注册表客户端、本地缓存前置解析器、
测试用的内存解析器无需共同继承即可被依赖收集器使用。
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from qpm.core.models import SharedPackageConfig


class VersionResolver(Protocol):
    """版本解析器协议

    get_versions 返回的顺序即优先顺序（例如从新到旧），
    依赖收集器取第一个满足范围的版本，不再自行排序。
    """

    def get_versions(self, package_id: str) -> list[str]:
        """返回该包所有已知版本"""
        ...

    def get_shared_package(self, package_id: str, version: str) -> SharedPackageConfig:
        """返回指定版本的完整解析配置"""
        ...
