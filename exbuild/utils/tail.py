"""会话日志实时转发（verbose 模式）

LogTailer 在后台线程中轮询追加写入的日志文件，把新内容复制到
输出流。它只读不写。stop() 会读完剩余内容、关闭文件句柄并等待线程退出。
"""

from __future__ import annotations

import logging
import sys
import threading
from pathlib import Path
from typing import BinaryIO

logger = logging.getLogger(__name__)

_CHUNK = 64 * 1024


class LogTailer:
    """后台日志转发线程"""

    def __init__(
        self, log_path: Path, out: BinaryIO | None = None,
        interval: float = 0.2,
    ) -> None:
        self.log_path = log_path
        self.out = out if out is not None else sys.stdout.buffer
        self.interval = interval
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        # daemon 线程：即使主线程异常退出也不会残留
        self._thread = threading.Thread(
            target=self._run, name="exbuild-log-tail", daemon=True,
        )
        self._thread.start()

    def stop(self, timeout: float = 5.0) -> None:
        if self._thread is None:
            return
        self._stop.set()
        self._thread.join(timeout)
        self._thread = None

    def _run(self) -> None:
        with open(self.log_path, "rb") as f:
            while not self._stop.is_set():
                if not self._copy(f):
                    self._stop.wait(self.interval)
            # 停止前把最后一批输出读完
            while self._copy(f):
                pass

    def _copy(self, f: BinaryIO) -> bool:
        data = f.read(_CHUNK)
        if not data:
            return False
        try:
            self.out.write(data)
            self.out.flush()
        except (OSError, ValueError):
            # 输出流已关闭（如管道被对端关闭），停止转发但不影响构建
            logger.debug("日志转发输出流不可用，停止转发")
            self._stop.set()
            return False
        return True


def tail_lines(path: Path, count: int = 10) -> list[str]:
    """返回文件最后 count 行（文件不可读或为空时返回空列表）"""
    try:
        data = path.read_bytes()
    except OSError:
        return []
    lines = data.decode("utf-8", errors="replace").splitlines()
    return lines[-count:]
