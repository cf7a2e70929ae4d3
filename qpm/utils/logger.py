"""qpm 日志配置

日志一律写 stderr，stdout 只留给命令结果（解析结果可以直接管道处理）。
环境变量:
  QPM_LOG_LEVEL   日志级别，默认 INFO
  QPM_LOG_JSON    为 1 时输出 JSON 行
"""

from __future__ import annotations

import json
import logging
import os
import sys
from datetime import datetime, timezone

TEXT_FORMAT = "%(asctime)s [%(levelname)-7s] %(name)s: %(message)s"

# 通过 logger.info(..., extra={...}) 附带的包上下文，JSON 输出时原样带出
CONTEXT_FIELDS = ("package_id", "version", "version_range")


class JSONFormatter(logging.Formatter):
    """一条记录一行 JSON，字段: timestamp / level / logger / message / line

    记录带有包上下文（package_id / version / version_range）时一并输出，
    有异常时附带 exception。
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, object] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "line": record.lineno,
        }
        for name in CONTEXT_FIELDS:
            value = getattr(record, name, None)
            if value is not None:
                entry[name] = value
        if record.exc_info and record.exc_info[1]:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False)


def setup_logging(level: str = "INFO", json_output: bool = False) -> None:
    """配置根日志器，重复调用时替换掉已有 handler"""
    root = logging.getLogger()
    for old in root.handlers[:]:
        root.removeHandler(old)
        old.close()

    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(JSONFormatter() if json_output else logging.Formatter(TEXT_FORMAT))
    root.addHandler(handler)


def setup_logging_from_env() -> None:
    """按 QPM_LOG_LEVEL / QPM_LOG_JSON 配置日志，CLI 与 gunicorn 入口共用"""
    setup_logging(
        level=os.getenv("QPM_LOG_LEVEL", "INFO"),
        json_output=os.getenv("QPM_LOG_JSON", "") == "1",
    )
