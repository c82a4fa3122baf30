"""构建编排器

状态流转:
    INIT → WORKDIR_CREATED → (每个包: FETCHING → BUILDING → INSTALLED) → CLEANUP → DONE
任意非终态出错（含中断信号）都进入 FAILED，走统一的失败处理路径。

多个包按声明顺序串行安装，任一失败即整个会话失败，不做部分回滚。
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import BinaryIO, TextIO

from exbuild.core.config import Config, get_config
from exbuild.core.models import Definition, Directive, PackageContext, SessionReport, SessionState
from exbuild.services.build import build_package, fix_directory_permissions
from exbuild.services.fetch import fetch_package
from exbuild.services.session import BuildSession, new_context

logger = logging.getLogger(__name__)


class Orchestrator:
    """获取 → 构建 → 安装 → 权限修正 → 清理"""

    def __init__(
        self,
        config: Config | None = None,
        *,
        out: BinaryIO | None = None,
        err: TextIO | None = None,
    ) -> None:
        self.config = config or get_config()
        self.out = out
        self.err = err

    def install(
        self, definition: Definition, prefix: str | Path, *,
        keep: bool = False, verbose: bool = False,
    ) -> SessionReport:
        """执行一次完整安装，返回会话报告（不抛出构建类异常）"""
        session = BuildSession(
            new_context(self.config, prefix, keep=keep, verbose=verbose),
            out=self.out,
        )
        try:
            with session:
                for directive in definition.directives:
                    self._install_package(session, directive)
        except (Exception, KeyboardInterrupt) as e:
            logger.debug("会话失败: %s", definition.name, exc_info=True)
            session.fail(definition.name, e, self.err)
            return session.report

        session.finish()
        return session.report

    def run(
        self, definition: Definition, prefix: str | Path, *,
        keep: bool = False, verbose: bool = False,
    ) -> int:
        """install 的退出码包装：成功 0，失败 1"""
        report = self.install(definition, prefix, keep=keep, verbose=verbose)
        return 0 if report.success else 1

    @staticmethod
    def _install_package(session: BuildSession, directive: Directive) -> None:
        ctx = session.ctx
        assert session.log is not None

        session.state = SessionState.FETCHING
        source_dir = fetch_package(directive.fetch, directive.package, ctx.work_dir, session.log)

        session.state = SessionState.BUILDING
        logger.info("Installing %s...", directive.package)
        pkg = PackageContext(name=directive.package, source_dir=source_dir, session=ctx)
        build_package(directive, pkg, session.log)
        fix_directory_permissions(ctx.prefix)

        session.state = SessionState.INSTALLED
        session.report.installed.append(directive.package)
        logger.info("Installed %s to %s", directive.package, ctx.prefix)
