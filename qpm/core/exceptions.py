"""统一异常体系

所有业务异常继承 QpmError，替代直接退出进程的致命错误处理。
CLI 层据此输出友好提示并返回非零退出码，Web 层据此映射 HTTP 状态码，
测试和批处理工具可以直接捕获并检查失败原因。
"""

from __future__ import annotations


class QpmError(Exception):
    """基础异常"""

    code: str = "UNKNOWN"

    def __init__(self, message: str) -> None:
        super().__init__(message)


class ConfigError(QpmError):
    """配置文件缺失或内容无效"""

    code = "CONFIG_ERROR"


class ValidationError(QpmError):
    """输入数据校验失败"""

    code = "VALIDATION_ERROR"

    def __init__(self, message: str, details: list[str] | None = None) -> None:
        super().__init__(message)
        self.details = details or []


# =========================================================================
# 依赖解析
# =========================================================================


class DependencyError(QpmError):
    """依赖解析失败"""

    code = "DEPENDENCY_ERROR"


class UnresolvedDependencyError(DependencyError):
    """没有任何已知版本满足依赖的版本范围"""

    code = "UNRESOLVED_DEPENDENCY"

    def __init__(self, dependency_id: str, version_range: str) -> None:
        super().__init__(
            f"找不到满足版本范围的依赖: {dependency_id} ({version_range})"
        )
        self.dependency_id = dependency_id
        self.version_range = version_range


class DependencyCycleError(DependencyError):
    """依赖图中存在环"""

    code = "DEPENDENCY_CYCLE"

    def __init__(self, path: list[str]) -> None:
        super().__init__(f"检测到循环依赖: {' -> '.join(path)}")
        self.path = path


class VersionConflictError(DependencyError):
    """同一个包在一次解析中被解析为两个不同版本"""

    code = "VERSION_CONFLICT"

    def __init__(self, dependency_id: str, existing: str, incoming: str) -> None:
        super().__init__(
            f"版本冲突: {dependency_id} 已解析为 {existing}，又被解析为 {incoming}"
        )
        self.dependency_id = dependency_id
        self.existing = existing
        self.incoming = incoming


class RegistryError(DependencyError):
    """远端包注册表请求失败"""

    code = "REGISTRY_ERROR"


# =========================================================================
# 本地缓存
# =========================================================================


class CacheError(QpmError):
    """本地制品缓存失败"""

    code = "CACHE_ERROR"


class CacheCorruptionError(CacheError):
    """仓库文件存在但无法解析"""

    code = "CACHE_CORRUPTION"


class CacheWriteError(CacheError):
    """写入缓存目录时文件操作失败"""

    code = "CACHE_WRITE_ERROR"


class CacheIntegrityError(CacheError):
    """缓存中的包配置版本与预期版本不一致"""

    code = "CACHE_INTEGRITY"
