"""Shell 命令执行工具：统一子进程调用

通过 CommandExecutor 协议抽象子进程执行与工具查找，方便测试替换。
所有子进程同步执行到结束，stdout/stderr 合并写入调用方传入的日志句柄。
"""

from __future__ import annotations

import logging
import shutil
import subprocess
from pathlib import Path
from typing import BinaryIO, Protocol

from exbuild.core.exceptions import ExBuildError

logger = logging.getLogger(__name__)


# =========================================================================
# 命令执行器协议
# =========================================================================

class CommandExecutor(Protocol):
    """命令执行器协议：抽象子进程调用

    测试时可注入假实现，模拟 git/curl/make 的效果而无需真实 IO。
    """

    def execute(
        self,
        args: list[str],
        *,
        cwd: Path,
        log: BinaryIO,
        env: dict[str, str] | None = None,
    ) -> int:
        """执行命令，输出写入 log，返回退出码"""
        ...

    def which(self, name: str) -> str | None:
        """查找可执行文件，找不到返回 None"""
        ...


# =========================================================================
# 默认实现: 本地执行器
# =========================================================================

class LocalExecutor:
    """本地子进程执行器（默认实现）"""

    def execute(
        self,
        args: list[str],
        *,
        cwd: Path,
        log: BinaryIO,
        env: dict[str, str] | None = None,
    ) -> int:
        log.flush()
        r = subprocess.run(
            args, cwd=str(cwd), env=env,
            stdin=subprocess.DEVNULL, stdout=log, stderr=subprocess.STDOUT,
            check=False,
        )
        return r.returncode

    def which(self, name: str) -> str | None:
        return shutil.which(name)


_default_executor: CommandExecutor = LocalExecutor()


def get_executor() -> CommandExecutor:
    """获取全局默认命令执行器"""
    return _default_executor


def set_executor(executor: CommandExecutor) -> None:
    """替换全局默认命令执行器（用于测试）"""
    global _default_executor  # noqa: PLW0603
    _default_executor = executor


# =========================================================================
# 便捷函数
# =========================================================================

def run_logged(
    args: list[str], *,
    cwd: Path,
    log: BinaryIO,
    label: str = "cmd",
    error: type[ExBuildError] = ExBuildError,
    env: dict[str, str] | None = None,
) -> None:
    """执行命令并把输出写入日志，失败抛 error 指定的异常类型"""
    logger.debug("  %s: %s (cwd=%s)", label, " ".join(args), cwd)
    log.write(f"+ {' '.join(args)}\n".encode())
    rc = get_executor().execute(args, cwd=cwd, log=log, env=env)
    if rc != 0:
        raise error(f"{label} 失败 (rc={rc}): {' '.join(args)}")
