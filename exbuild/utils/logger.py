"""exbuild 日志配置

诊断信息（进度、警告）统一经 logging 输出到 stderr，支持普通文本和
结构化 JSON 两种格式。构建会话期间额外挂一个文件 handler，把同样的
诊断信息追加到会话日志里，与子进程输出交织在一起。
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path

# 会话日志 handler 挂在包根 logger 上，覆盖所有 exbuild.* 模块
ROOT_LOGGER = "exbuild"


class JSONFormatter(logging.Formatter):
    """结构化 JSON 日志格式器，便于 CI 流水线消费"""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }
        if record.exc_info and record.exc_info[1]:
            log_entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_entry)


def setup_logging(level: str = "INFO", json_output: bool = False) -> None:
    """配置根日志器

    参数:
        level: 日志级别字符串（DEBUG, INFO, WARNING, ERROR）
        json_output: 为 True 时使用 JSON 格式，否则只输出消息本身

    说明:
        - 输出到 stderr，非 verbose 模式下同样可见
        - 自动清理已有 handlers，避免重复输出
    """
    root = logging.getLogger()

    for handler in root.handlers[:]:
        root.removeHandler(handler)
        handler.close()

    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    handler = logging.StreamHandler(sys.stderr)
    if json_output:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter("%(message)s"))
    root.addHandler(handler)


def attach_session_log(log_path: Path) -> logging.Handler:
    """把会话日志文件挂到 exbuild logger 上，返回 handler 以便移除"""
    handler = logging.FileHandler(log_path, mode="a", encoding="utf-8")
    handler.setFormatter(
        logging.Formatter("%(asctime)s [%(levelname)s] %(message)s")
    )
    logging.getLogger(ROOT_LOGGER).addHandler(handler)
    return handler


def detach_session_log(handler: logging.Handler) -> None:
    """移除并关闭会话日志 handler"""
    logging.getLogger(ROOT_LOGGER).removeHandler(handler)
    handler.close()


def reset_logging() -> None:
    """重置根日志器配置（测试用）"""
    root = logging.getLogger()
    for handler in root.handlers[:]:
        root.removeHandler(handler)
        handler.close()
