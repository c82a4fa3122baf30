"""构建会话：工作目录与日志的生命周期

一个会话独占一个工作目录和一个日志文件（路径由时间戳 + pid 生成）。
进入会话时创建二者并保持日志句柄打开；退出时（无论成功、失败还是中断）
停止日志转发线程、移除日志 handler、关闭句柄。
"""

from __future__ import annotations

import logging
import os
import shutil
import sys
import time
from pathlib import Path
from types import TracebackType
from typing import BinaryIO, TextIO

from exbuild import __version__
from exbuild.core.config import Config
from exbuild.core.models import SessionContext, SessionReport, SessionState
from exbuild.utils.logger import attach_session_log, detach_session_log
from exbuild.utils.tail import LogTailer, tail_lines

logger = logging.getLogger(__name__)

LOG_TAIL_LINES = 10


def session_seed() -> str:
    """时间戳 + pid，用于区分并发的会话"""
    return f"{time.strftime('%Y%m%d%H%M%S')}.{os.getpid()}"


def new_context(
    config: Config, prefix: str | Path, *,
    keep: bool = False, verbose: bool = False,
) -> SessionContext:
    """根据配置生成会话上下文（此时不创建任何文件）"""
    if config.build_path:
        work_dir = Path(config.build_path).expanduser().resolve()
        log_path = work_dir.with_name(work_dir.name + ".log")
    else:
        tmp = Path(config.tmp_dir).expanduser().resolve()
        seed = session_seed()
        work_dir = tmp / f"exbuild.{seed}"
        log_path = tmp / f"exbuild.{seed}.log"
    return SessionContext(
        work_dir=work_dir,
        log_path=log_path,
        prefix=Path(prefix).expanduser().resolve(),
        keep=keep,
        verbose=verbose,
        make_opts=config.make_args,
    )


class BuildSession:
    """会话资源持有者，作为上下文管理器使用"""

    def __init__(self, ctx: SessionContext, out: BinaryIO | None = None) -> None:
        self.ctx = ctx
        self.report = SessionReport()
        self.log: BinaryIO | None = None
        self._handler: logging.Handler | None = None
        self._tailer = LogTailer(ctx.log_path, out=out) if ctx.verbose else None

    @property
    def state(self) -> SessionState:
        return self.report.state

    @state.setter
    def state(self, value: SessionState) -> None:
        self.report.state = value

    # ---- 资源 ----

    def __enter__(self) -> BuildSession:
        self.ctx.work_dir.mkdir(parents=True, exist_ok=True)
        self.ctx.log_path.parent.mkdir(parents=True, exist_ok=True)
        # 无缓冲追加写，子进程与 logging 的输出按时间顺序交织
        self.log = open(self.ctx.log_path, "ab", buffering=0)  # noqa: SIM115
        self._handler = attach_session_log(self.ctx.log_path)
        if self._tailer is not None:
            self._tailer.start()
        self.state = SessionState.WORKDIR_CREATED
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if exc is not None and self.log is not None:
            self.log.write(f"\n{exc_type.__name__}: {exc}\n".encode())
        self.close()

    def close(self) -> None:
        if self._tailer is not None:
            self._tailer.stop()
        if self._handler is not None:
            detach_session_log(self._handler)
            self._handler = None
        if self.log is not None:
            self.log.close()
            self.log = None

    # ---- 结束处理 ----

    def finish(self) -> None:
        """成功结束：未要求保留时删除工作目录和日志"""
        self.state = SessionState.CLEANUP
        if not self.ctx.keep:
            shutil.rmtree(self.ctx.work_dir, ignore_errors=True)
            self.ctx.log_path.unlink(missing_ok=True)
        self.state = SessionState.DONE

    def fail(self, definition_name: str, error: BaseException, err: TextIO | None = None) -> None:
        """失败结束：打印横幅，空工作目录删除，非空则保留现场并输出日志尾部"""
        err = err if err is not None else sys.stderr
        self.state = SessionState.FAILED
        self.report.message = str(error)

        try:
            self.ctx.work_dir.rmdir()
            work_dir_kept = False
        except OSError:
            work_dir_kept = self.ctx.work_dir.exists()

        print(file=err)
        print(f"BUILD FAILED ({definition_name} using exbuild {__version__})", file=err)
        print(file=err)
        if str(error):
            print(str(error), file=err)
            print(file=err)
        if work_dir_kept:
            print(f"Inspect or clean up the working tree at {self.ctx.work_dir}", file=err)

        lines = tail_lines(self.ctx.log_path, LOG_TAIL_LINES)
        if lines:
            print(f"Results logged to {self.ctx.log_path}", file=err)
            print(file=err)
            print(f"Last {LOG_TAIL_LINES} log lines:", file=err)
            for line in lines:
                print(line, file=err)
        err.flush()
