"""集中配置管理

所有路径和注册表地址从这里取，支持 YAML 设置文件 + 环境变量 + 编程式覆盖。

默认位置:
  - config_dir:      click.get_app_dir("QPM-Rust")，可用 QPM_CONFIG_DIR 覆盖
  - repository_file: <config_dir>/qpm.repository.json
  - cache_dir:       <config_dir>/cache，可用 QPM_CACHE_DIR 覆盖
  - 设置文件:        <config_dir>/qpm.settings.yml
"""

from __future__ import annotations

import logging
import os
from dataclasses import asdict, dataclass, field
from pathlib import Path

import click
import yaml

from qpm.core.exceptions import ConfigError
from qpm.utils.file_io import load_yaml

logger = logging.getLogger(__name__)

APP_NAME = "QPM-Rust"
REPOSITORY_FILE_NAME = "qpm.repository.json"
SETTINGS_FILE_NAME = "qpm.settings.yml"


def default_config_dir() -> str:
    return os.getenv("QPM_CONFIG_DIR") or click.get_app_dir(APP_NAME)


@dataclass
class Config:
    """全局配置"""

    config_dir: str = ""
    cache_dir: str = ""
    repository_file: str = ""

    # 远端注册表
    qpackages_url: str = "https://qpackages.com"
    request_timeout: int = 15
    offline: bool = False

    # 放不到字段里的配置项
    extra: dict = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.config_dir = self.config_dir or default_config_dir()
        base = Path(self.config_dir)
        self.cache_dir = self.cache_dir or os.getenv("QPM_CACHE_DIR") or str(base / "cache")
        self.repository_file = self.repository_file or str(base / REPOSITORY_FILE_NAME)

    @classmethod
    def from_file(cls, path: str | Path = "") -> Config:
        """从 YAML 设置文件加载配置，文件不存在则返回默认值"""
        settings = Path(path) if path else Path(default_config_dir()) / SETTINGS_FILE_NAME
        try:
            data = load_yaml(settings)
        except yaml.YAMLError as e:
            raise ConfigError(f"设置文件格式错误: {settings}: {e}") from e
        if not data:
            return cls()
        known = {f for f in cls.__dataclass_fields__ if f != "extra"}
        matched = {k: v for k, v in data.items() if k in known}
        extra = {k: v for k, v in data.items() if k not in known}
        try:
            cfg = cls(**matched)
        except TypeError as e:
            raise ConfigError(f"设置文件字段无效: {settings}: {e}") from e
        cfg.extra = extra
        return cfg

    def to_dict(self) -> dict:
        return asdict(self)


# 全局单例，首次 import 时不加载文件；由 CLI / Web 入口显式初始化
_current: Config | None = None


def get_config() -> Config:
    """获取当前配置（未初始化则返回默认值）"""
    global _current  # noqa: PLW0603
    if _current is None:
        _current = Config()
    return _current


def init_config(path: str | Path = "") -> Config:
    """从设置文件初始化全局配置"""
    global _current  # noqa: PLW0603
    _current = Config.from_file(path)
    logger.info("配置已加载: %s", path or _current.config_dir)
    return _current
