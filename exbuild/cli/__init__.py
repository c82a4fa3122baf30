"""exbuild 命令行接口

    exbuild [-k] [-v] <definition> <prefix>
    exbuild --definitions
    exbuild --add-definition <version>
"""

from __future__ import annotations

import signal
from typing import Any

import click

from exbuild import __version__
from exbuild.cli.definitions import add_definition, print_definitions
from exbuild.core.config import init_config
from exbuild.core.exceptions import ExBuildError, SessionInterrupted, UsageError
from exbuild.core.registry import DefinitionRegistry
from exbuild.services.orchestrator import Orchestrator
from exbuild.utils.logger import setup_logging


def _raise_interrupted(signum: int, _frame: Any) -> None:
    raise SessionInterrupted(f"received signal {signal.Signals(signum).name}")


def _require_install_args(definition: str | None, prefix: str | None) -> None:
    if not definition or not prefix:
        raise UsageError("missing DEFINITION or PREFIX")


class ExBuildCommand(click.Command):
    """命令行参数错误统一以退出码 1 结束"""

    def parse_args(self, ctx: click.Context, args: list[str]) -> list[str]:
        try:
            return super().parse_args(ctx, args)
        except click.UsageError as e:
            e.exit_code = 1
            raise


@click.command(cls=ExBuildCommand, context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(version=__version__, prog_name="exbuild")
@click.argument("definition", required=False)
@click.argument("prefix", required=False)
@click.option("-k", "--keep", is_flag=True, help="成功后保留工作目录")
@click.option("-v", "--verbose", is_flag=True, help="构建过程中实时输出构建日志")
@click.option("--definitions", "list_definitions", is_flag=True, help="列出可用定义")
@click.option("--add-definition", "add_version", metavar="VERSION", default=None,
              help="新增按提交检出上游仓库的内置定义")
@click.pass_context
def main(
    ctx: click.Context, definition: str | None, prefix: str | None,
    keep: bool, verbose: bool, list_definitions: bool, add_version: str | None,
) -> None:
    """构建指定版本的 Elixir 并安装到 PREFIX"""
    try:
        cfg = init_config()
    except ExBuildError as e:
        click.echo(f"exbuild: {e}", err=True)
        ctx.exit(1)
    setup_logging(level=cfg.log_level, json_output=cfg.log_json)

    if list_definitions:
        print_definitions(DefinitionRegistry(config=cfg))
        return
    if add_version is not None:
        ctx.exit(add_definition(DefinitionRegistry(config=cfg), add_version))

    registry = DefinitionRegistry(config=cfg)
    try:
        _require_install_args(definition, prefix)
        loaded = registry.load(registry.resolve(definition))
    except UsageError:
        click.echo(ctx.get_usage(), err=True)
        ctx.exit(1)
    except ExBuildError as e:
        click.echo(f"exbuild: {e}", err=True)
        ctx.exit(1)

    previous = signal.signal(signal.SIGTERM, _raise_interrupted)
    try:
        code = Orchestrator(cfg).run(loaded, prefix, keep=keep, verbose=verbose)
    except ExBuildError as e:
        # 会话创建前的配置错误（如 make 参数无法解析）
        click.echo(f"exbuild: {e}", err=True)
        code = 1
    finally:
        signal.signal(signal.SIGTERM, previous)
    ctx.exit(code)
