"""文件读写工具

集中管理 YAML（配置）与 JSON（仓库文档）的序列化/反序列化，
统一 encoding="utf-8"、空值保护、目录自动创建、原子写入。
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

# 单个配置/仓库文件最大 50MB
MAX_FILE_SIZE = 50 * 1024 * 1024


def atomic_write(path: Path, content: str) -> None:
    """原子写入：同目录临时文件 + fsync + os.replace

    中途崩溃时目标文件要么是旧内容，要么是新内容，不会出现半截文件。
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(dir=str(path.parent), prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp, str(path))
    except Exception:
        # 只清理临时文件，原异常继续抛出
        try:
            os.unlink(tmp)
        except OSError:
            pass
        raise


def _check_size(p: Path) -> None:
    size = p.stat().st_size
    if size > MAX_FILE_SIZE:
        raise ValueError(f"文件过大: {p} ({size} 字节), 超过限制 {MAX_FILE_SIZE} 字节")


def load_yaml(path: str | Path) -> dict[str, Any]:
    """读取 YAML 配置，文件不存在、为空或不是字典时返回空字典

    异常:
        yaml.YAMLError: YAML 格式错误
        OSError: IO 错误
    """
    p = Path(path)
    if not p.exists():
        return {}
    _check_size(p)
    try:
        with open(p, encoding="utf-8") as f:
            result = yaml.safe_load(f)
    except yaml.YAMLError as e:
        logger.error("解析 YAML 文件失败: %s, 错误: %s", path, e)
        raise
    if result is None:
        return {}
    if not isinstance(result, dict):
        logger.warning(
            "%s 内容不是字典类型 (实际类型: %s)，返回空字典", path, type(result).__name__,
        )
        return {}
    return result


def load_json(path: str | Path) -> Any:
    """读取 JSON 文档，文件不存在时返回 None

    异常:
        json.JSONDecodeError: 内容不是有效 JSON
    """
    p = Path(path)
    if not p.exists():
        return None
    _check_size(p)
    return json.loads(p.read_text(encoding="utf-8"))


def save_json(path: str | Path, data: Any) -> None:
    """原子写入 JSON 文档（缩进 2，保留非 ASCII 字符）"""
    content = json.dumps(data, indent=2, ensure_ascii=False)
    atomic_write(Path(path), content + "\n")
