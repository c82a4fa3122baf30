"""定义列表 / 新增命令的输出"""

from __future__ import annotations

import click

from exbuild.core.exceptions import ExBuildError
from exbuild.core.registry import DefinitionRegistry


def print_definitions(registry: DefinitionRegistry) -> None:
    """先输出远程发布版本（降序），再输出内置定义（排序）"""
    for version in registry.list_remote_releases():
        click.echo(version)
    for name in registry.list_builtin_definitions():
        click.echo(name)


def add_definition(registry: DefinitionRegistry, version: str) -> int:
    """写入内置定义，返回退出码"""
    try:
        path = registry.add_definition(version)
    except (ExBuildError, OSError) as e:
        click.echo(f"exbuild: {e}", err=True)
        return 1
    click.echo(f"Definition {version} written to {path}")
    return 0
