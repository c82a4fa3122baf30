"""源码获取策略：tarball / git / git_with_history / git_sha1

每个策略把源码放到 <work_dir>/<package>/ 下。外部工具（curl/wget、git）
的输出全部写入会话日志；工具缺失抛 MissingDependency，其余失败抛 FetchError。
"""

from __future__ import annotations

import logging
import tarfile
from pathlib import Path
from typing import BinaryIO, Protocol

from exbuild.core.exceptions import FetchError, MissingDependency, UnknownRevision
from exbuild.core.models import (
    FetchSpec,
    GitFetch,
    GitHistoryFetch,
    GitShaFetch,
    TarballFetch,
)
from exbuild.utils.net import download_command, validate_url_scheme
from exbuild.utils.shell import get_executor, run_logged

logger = logging.getLogger(__name__)

# codeload 风格 tar 包的根目录名里带的是提交 SHA 而不是包名
UPSTREAM_ROOT_PATTERN = "elixir-lang-elixir-*"

_GIT_REMEDY = "exbuild: please install `git` and try again"


class FetchStrategy(Protocol):
    def fetch(self, spec: FetchSpec, package: str, work_dir: Path, log: BinaryIO) -> None:
        ...


def _require_git() -> None:
    if not get_executor().which("git"):
        raise MissingDependency("git not found", remedy=_GIT_REMEDY)


class TarballSource:
    """下载 tar 包并解压到工作目录"""

    def fetch(self, spec: TarballFetch, package: str, work_dir: Path, log: BinaryIO) -> None:
        validate_url_scheme(spec.url, context=f"tarball {package}")
        archive = work_dir / f"{package}.tar.gz"
        logger.info("Downloading %s...", spec.url)
        run_logged(
            download_command(spec.url, str(archive)),
            cwd=work_dir, log=log, label="download", error=FetchError,
        )
        self._extract(archive, work_dir)
        archive.unlink()
        self._rename_upstream_root(package, work_dir)

    @staticmethod
    def _extract(archive: Path, work_dir: Path) -> None:
        try:
            with tarfile.open(archive) as tf:
                tf.extractall(path=str(work_dir), filter="data")  # noqa: S202
        except (OSError, tarfile.TarError) as e:
            raise FetchError(f"解压失败 {archive.name}: {e}") from e

    @staticmethod
    def _rename_upstream_root(package: str, work_dir: Path) -> None:
        target = work_dir / package
        if target.exists():
            return
        for candidate in sorted(work_dir.glob(UPSTREAM_ROOT_PATTERN)):
            if candidate.is_dir():
                candidate.rename(target)
                logger.debug("重命名 %s -> %s", candidate.name, package)
                return


class GitSource:
    """浅克隆指定 ref"""

    clone_args: tuple[str, ...] = ("--depth", "1")

    def fetch(self, spec: GitFetch, package: str, work_dir: Path, log: BinaryIO) -> None:
        _require_git()
        logger.info("Cloning %s...", spec.url)
        run_logged(
            ["git", "clone", *self.clone_args, "--branch", spec.ref, spec.url, package],
            cwd=work_dir, log=log, label="git clone", error=FetchError,
        )


class GitHistorySource(GitSource):
    """完整历史克隆（构建需要 git describe 时使用）"""

    clone_args = ()


class GitShaSource:
    """克隆默认分支，再检出指定提交"""

    def fetch(self, spec: GitShaFetch, package: str, work_dir: Path, log: BinaryIO) -> None:
        _require_git()
        logger.info("Cloning %s...", spec.url)
        run_logged(
            ["git", "clone", spec.url, package],
            cwd=work_dir, log=log, label="git clone", error=FetchError,
        )
        run_logged(
            ["git", "-C", package, "checkout", spec.ref],
            cwd=work_dir, log=log, label=f"checkout {spec.ref}", error=UnknownRevision,
        )


FETCH_STRATEGIES: dict[str, FetchStrategy] = {
    TarballFetch.strategy: TarballSource(),
    GitFetch.strategy: GitSource(),
    GitHistoryFetch.strategy: GitHistorySource(),
    GitShaFetch.strategy: GitShaSource(),
}


def fetch_package(spec: FetchSpec, package: str, work_dir: Path, log: BinaryIO) -> Path:
    """按策略表分派获取，返回包目录"""
    strategy = FETCH_STRATEGIES.get(spec.strategy)
    if strategy is None:
        raise FetchError(f"不支持的获取策略: {spec.strategy}")
    strategy.fetch(spec, package, work_dir, log)
    package_dir = work_dir / package
    if not package_dir.is_dir():
        raise FetchError(f"获取完成后未找到包目录: {package_dir}")
    return package_dir
