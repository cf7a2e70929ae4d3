"""语义化版本工具

包配置中的版本范围沿用 Cargo 风格写法（裸版本号等价于 ^，比较符以逗号分隔），
同时兼容 npm 风格（空格分隔、||）。统一在此处解析，其他模块不直接依赖
semantic_version 的细节。
"""

from __future__ import annotations

import logging
import re

import semantic_version

from qpm.core.exceptions import ValidationError

logger = logging.getLogger(__name__)

_BARE_VERSION_RE = re.compile(r"^\d+(\.\d+){0,2}([-+][0-9A-Za-z.\-+]*)?$")

VersionRange = semantic_version.NpmSpec | semantic_version.SimpleSpec


def _normalize_range(raw: str) -> str:
    s = raw.strip()
    if not s:
        return "*"
    # Cargo: "1.2.3" 表示 "^1.2.3"
    if _BARE_VERSION_RE.match(s):
        return f"^{s}"
    return s


def parse_range(raw: str) -> VersionRange:
    """解析版本范围，先按 npm 语法，失败再按逗号分隔的 SimpleSpec 语法"""
    spec = _normalize_range(raw)
    try:
        return semantic_version.NpmSpec(spec)
    except ValueError:
        pass
    try:
        return semantic_version.SimpleSpec(re.sub(r"\s*,\s*", ",", spec))
    except ValueError as e:
        raise ValidationError(f"无效的版本范围 '{raw}': {e}") from e


def parse_version(raw: str) -> semantic_version.Version:
    try:
        return semantic_version.Version.coerce(raw.strip())
    except ValueError as e:
        raise ValidationError(f"无效的版本号 '{raw}': {e}") from e


def normalize_version(raw: str) -> str:
    """统一版本号写法，如 "1.2" -> "1.2.0" """
    return str(parse_version(raw))


def first_match(version_range: str, candidates: list[str]) -> str | None:
    """按给定顺序返回第一个满足范围的版本，顺序策略由调用方决定"""
    spec = parse_range(version_range)
    for raw in candidates:
        try:
            ver = semantic_version.Version(raw)
        except ValueError:
            logger.warning("跳过无效版本号: %s", raw)
            continue
        if spec.match(ver):
            return raw
    return None


def sort_newest_first(candidates: list[str]) -> list[str]:
    """按语义化版本从新到旧排序，无效版本号排在最后"""
    valid: list[tuple[semantic_version.Version, str]] = []
    invalid: list[str] = []
    for raw in candidates:
        try:
            valid.append((semantic_version.Version(raw), raw))
        except ValueError:
            invalid.append(raw)
    valid.sort(key=lambda item: item[0], reverse=True)
    return [raw for _, raw in valid] + invalid
