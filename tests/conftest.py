"""共享 fixture：假命令执行器 + 隔离配置

FakeExecutor 模拟 curl / wget / git / make 对文件系统的效果，
测试无需网络、git 或编译工具链。
"""

from __future__ import annotations

import shutil
from pathlib import Path
from typing import BinaryIO

import pytest

from exbuild.core.config import Config, reset_config
from exbuild.utils.shell import LocalExecutor, set_executor


class FakeExecutor:
    """记录所有调用并模拟外部工具"""

    def __init__(self) -> None:
        self.calls: list[list[str]] = []
        self.missing: set[str] = set()
        self.downloads: dict[str, Path] = {}   # url -> 本地 tar 包
        self.commits: set[str] = set()         # git checkout 可用的提交
        self.fail_clone: set[str] = set()      # clone 失败的 url
        self.fail_make = False

    def which(self, name: str) -> str | None:
        return None if name in self.missing else f"/usr/bin/{name}"

    def execute(
        self, args: list[str], *, cwd: Path, log: BinaryIO,
        env: dict[str, str] | None = None,
    ) -> int:
        self.calls.append(list(args))
        log.write(f"fake: {' '.join(args)}\n".encode())
        tool = args[0]
        if tool in ("curl", "wget"):
            return self._download(args, cwd, log)
        if tool == "git":
            return self._git(args, cwd, log)
        if tool == "make":
            return self._make(cwd, log)
        return 0

    def _download(self, args: list[str], cwd: Path, log: BinaryIO) -> int:
        url = args[-1]
        flag = "-o" if args[0] == "curl" else "-O"
        dest = Path(args[args.index(flag) + 1])
        src = self.downloads.get(url)
        if src is None:
            log.write(b"curl: (22) The requested URL returned error: 404\n")
            return 22
        shutil.copy(src, cwd / dest)
        return 0

    def _git(self, args: list[str], cwd: Path, log: BinaryIO) -> int:
        if args[1] == "clone":
            url, target = args[-2], args[-1]
            if url in self.fail_clone:
                log.write(b"fatal: repository not found\n")
                return 128
            repo = cwd / target
            (repo / ".git").mkdir(parents=True)
            (repo / "Makefile").write_text("all:\n")
            return 0
        if args[1] == "-C" and args[3] == "checkout":
            if args[4] in self.commits:
                return 0
            log.write(f"error: pathspec '{args[4]}' did not match\n".encode())
            return 1
        return 0

    def _make(self, cwd: Path, log: BinaryIO) -> int:
        if self.fail_make:
            log.write(b"make: *** [all] Error 2\n")
            return 2
        bin_dir = cwd / "bin"
        bin_dir.mkdir(exist_ok=True)
        (bin_dir / "elixir").write_text("#!/bin/sh\n")
        log.write(b"compiled elixir\n")
        return 0


@pytest.fixture()
def fake_executor():
    fake = FakeExecutor()
    set_executor(fake)
    yield fake
    set_executor(LocalExecutor())


@pytest.fixture()
def cfg(tmp_path: Path) -> Config:
    """指向 tmp_path 的配置，不读取真实环境变量"""
    tmp = tmp_path / "tmp"
    tmp.mkdir()
    return Config(
        tmp_dir=str(tmp),
        definitions_dir=str(tmp_path / "definitions"),
        make_opts="-j 2",
    )


@pytest.fixture(autouse=True)
def _isolate_config(monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
    for name in (
        "EXBUILD_BUILD_PATH", "EXBUILD_TMPDIR", "EXBUILD_MAKE_OPTS", "MAKE_OPTS",
        "EXBUILD_DEFINITIONS", "EXBUILD_LOG_LEVEL", "EXBUILD_LOG_JSON",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("EXBUILD_CONFIG", str(tmp_path / "no-such-config.yml"))
    reset_config()
    yield
    reset_config()
