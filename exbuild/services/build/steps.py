"""构建步骤表

步骤是 (PackageContext, log) -> None 的可调用对象，按名称注册到 BUILD_STEPS。
定义文件中的 build / before_install / after_install 只能引用这里注册过的名称。
所有步骤都在包目录内执行，外部命令输出写入会话日志。
"""

from __future__ import annotations

import logging
import shutil
from typing import BinaryIO, Callable

from exbuild.core.exceptions import BuildError
from exbuild.core.models import Directive, PackageContext
from exbuild.utils.shell import run_logged

logger = logging.getLogger(__name__)

BuildStep = Callable[[PackageContext, BinaryIO], None]

BUILD_STEPS: dict[str, BuildStep] = {}


def build_step(name: str) -> Callable[[BuildStep], BuildStep]:
    """注册构建步骤的装饰器"""
    def decorator(func: BuildStep) -> BuildStep:
        BUILD_STEPS[name] = func
        return func
    return decorator


@build_step("make")
def make(pkg: PackageContext, log: BinaryIO) -> None:
    """运行项目自身的 make"""
    run_logged(
        ["make", *pkg.session.make_opts],
        cwd=pkg.source_dir, log=log, label="make", error=BuildError,
    )


@build_step("copy")
def copy_to_prefix(pkg: PackageContext, log: BinaryIO) -> None:
    """把包目录整体复制到安装前缀"""
    pkg.prefix.mkdir(parents=True, exist_ok=True)
    log.write(f"+ copy {pkg.source_dir} -> {pkg.prefix}\n".encode())
    shutil.copytree(pkg.source_dir, pkg.prefix, symlinks=True, dirs_exist_ok=True)


@build_step("standard")
def standard(pkg: PackageContext, log: BinaryIO) -> None:
    make(pkg, log)
    copy_to_prefix(pkg, log)


@build_step("check")
def check(pkg: PackageContext, log: BinaryIO) -> None:
    """安装后自检：运行 <prefix>/bin/elixir --version"""
    elixir = pkg.prefix / "bin" / "elixir"
    if not elixir.exists():
        raise BuildError(f"安装后自检失败，未找到 {elixir}")
    run_logged(
        [str(elixir), "--version"],
        cwd=pkg.source_dir, log=log, label="check", error=BuildError,
    )


def _run_steps(names: tuple[str, ...], pkg: PackageContext, log: BinaryIO) -> None:
    for name in names:
        step = BUILD_STEPS.get(name)
        if step is None:
            raise BuildError(f"no such build step: {name}")
        logger.debug("  [%s] step %s", pkg.name, name)
        step(pkg, log)


def build_package(directive: Directive, pkg: PackageContext, log: BinaryIO) -> None:
    """before_install 钩子 → 构建步骤 → after_install 钩子"""
    _run_steps(directive.before_install, pkg, log)
    _run_steps(directive.build_steps, pkg, log)
    _run_steps(directive.after_install, pkg, log)
