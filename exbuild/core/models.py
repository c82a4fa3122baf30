"""核心数据模型

定义（Definition）由若干安装指令（Directive）组成，每条指令包含
包名、获取方式（四选一的和类型）和构建步骤列表。全部为不可变值。
会话上下文 SessionContext 同样不可变，贯穿获取/构建各组件。
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import ClassVar, Union

DEFAULT_BUILD_STEPS: tuple[str, ...] = ("standard",)

# =========================================================================
# 获取方式（和类型）
# =========================================================================


@dataclass(frozen=True)
class TarballFetch:
    """下载 tar 包并解压"""

    strategy: ClassVar[str] = "tarball"

    url: str


@dataclass(frozen=True)
class GitFetch:
    """浅克隆（depth=1）指定分支/标签"""

    strategy: ClassVar[str] = "git"

    url: str
    ref: str


@dataclass(frozen=True)
class GitHistoryFetch(GitFetch):
    """完整历史克隆，供依赖 git describe 的构建使用"""

    strategy: ClassVar[str] = "git_with_history"


@dataclass(frozen=True)
class GitShaFetch(GitFetch):
    """克隆默认分支后检出指定提交"""

    strategy: ClassVar[str] = "git_sha1"


FetchSpec = Union[TarballFetch, GitFetch, GitHistoryFetch, GitShaFetch]

FETCH_SPECS: dict[str, type] = {
    cls.strategy: cls
    for cls in (TarballFetch, GitFetch, GitHistoryFetch, GitShaFetch)
}


# =========================================================================
# 定义 / 指令
# =========================================================================


@dataclass(frozen=True)
class Directive:
    """单条安装指令：获取一个包并构建安装"""

    package: str
    fetch: FetchSpec
    build_steps: tuple[str, ...] = DEFAULT_BUILD_STEPS
    before_install: tuple[str, ...] = ()
    after_install: tuple[str, ...] = ()


@dataclass(frozen=True)
class Definition:
    """按声明顺序执行的指令序列"""

    name: str
    directives: tuple[Directive, ...] = ()
    source: str = ""  # 来源文件路径，内存合成的定义为空


# =========================================================================
# 定义解析结果
# =========================================================================


@dataclass(frozen=True)
class LocalFile:
    """用户直接给出的定义文件路径"""

    path: Path


@dataclass(frozen=True)
class BuiltinDefinition:
    """定义目录下的内置定义"""

    path: Path


@dataclass(frozen=True)
class RemoteRelease:
    """上游发布 API 中列出的版本"""

    version: str


ResolvedDefinition = Union[LocalFile, BuiltinDefinition, RemoteRelease]


# =========================================================================
# 会话
# =========================================================================


class SessionState(str, Enum):
    """构建会话状态"""

    INIT = "init"
    WORKDIR_CREATED = "workdir_created"
    FETCHING = "fetching"
    BUILDING = "building"
    INSTALLED = "installed"
    CLEANUP = "cleanup"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True)
class SessionContext:
    """一次安装的运行参数，会话开始时确定"""

    work_dir: Path
    log_path: Path
    prefix: Path
    keep: bool = False
    verbose: bool = False
    make_opts: tuple[str, ...] = ("-j", "2")


@dataclass(frozen=True)
class PackageContext:
    """构建步骤的入参：当前包及其所在会话"""

    name: str
    source_dir: Path
    session: SessionContext

    @property
    def prefix(self) -> Path:
        return self.session.prefix


@dataclass
class SessionReport:
    """会话结束后的结果摘要"""

    state: SessionState = SessionState.INIT
    installed: list[str] = field(default_factory=list)
    message: str = ""

    @property
    def success(self) -> bool:
        return self.state == SessionState.DONE
