"""定义注册表

解析顺序：
    1. 已存在的文件路径 → LocalFile
    2. 定义目录下同名文件 → BuiltinDefinition
    3. 上游发布 API 中的版本 → RemoteRelease
    4. 以上均不命中 → DefinitionNotFound

远程版本列表是尽力而为的外部数据：网络失败或格式变化时降级为空列表。
"""

from __future__ import annotations

import logging
import re
import urllib.error
from pathlib import Path
from typing import Callable

from exbuild.core.config import Config, get_config
from exbuild.core.definition import is_valid_package_name, load_definition, save_definition
from exbuild.core.exceptions import DefinitionNotFound, ValidationError
from exbuild.core.models import (
    BuiltinDefinition,
    Definition,
    Directive,
    GitShaFetch,
    LocalFile,
    RemoteRelease,
    ResolvedDefinition,
    TarballFetch,
)
from exbuild.utils.net import fetch_text

logger = logging.getLogger(__name__)

_RELEASE_URL_RE = re.compile(
    r"https://github\.com/elixir-lang/elixir/releases/download/v([^/\"\s]+)/"
)
_VERSION_RE = re.compile(r"^\d+(\.\d+)*(-[0-9A-Za-z.]+)?$")


def version_key(version: str) -> tuple:
    """版本排序键：数字段按整数比较，预发布版排在正式版之前"""
    core, _, pre = version.partition("-")
    numbers = tuple(int(p) for p in core.split("."))
    if not pre:
        return (numbers, 1, ())
    parts = tuple(
        (0, int(p), "") if p.isdigit() else (1, 0, p)
        for p in pre.split(".")
    )
    return (numbers, 0, parts)


def parse_release_versions(payload: str) -> list[str]:
    """从发布 API 原始响应中提取版本号（去重、降序）"""
    versions = {
        m.group(1) for m in _RELEASE_URL_RE.finditer(payload)
        if _VERSION_RE.match(m.group(1))
    }
    return sorted(versions, key=version_key, reverse=True)


class DefinitionRegistry:
    """定义查找 / 列表 / 新增"""

    def __init__(
        self,
        definitions_dir: str = "",
        config: Config | None = None,
        fetch: Callable[[str], str] | None = None,
    ) -> None:
        self.config = config or get_config()
        self.definitions_dir = Path(definitions_dir or self.config.definitions_dir)
        self._fetch = fetch or (
            lambda url: fetch_text(url, timeout=self.config.api_timeout)
        )
        self._remote_cache: list[str] | None = None

    # ---- 列表 ----

    def list_builtin_definitions(self) -> list[str]:
        """定义目录下的文件名（排序）"""
        if not self.definitions_dir.is_dir():
            return []
        return sorted(
            p.name for p in self.definitions_dir.iterdir()
            if p.is_file() and not p.name.startswith(".")
        )

    def list_remote_releases(self) -> list[str]:
        """上游发布版本（降序），失败时返回空列表"""
        if self._remote_cache is not None:
            return list(self._remote_cache)
        try:
            payload = self._fetch(self.config.releases_api)
        except (urllib.error.URLError, OSError, ValueError) as e:
            logger.warning("获取远程版本列表失败: %s", e)
            return []
        self._remote_cache = parse_release_versions(payload)
        return list(self._remote_cache)

    # ---- 解析 ----

    def resolve(self, name_or_path: str) -> ResolvedDefinition:
        """按 路径 → 内置 → 远程 的顺序解析定义"""
        path = Path(name_or_path)
        if path.is_file():
            return LocalFile(path=path)

        builtin = self.definitions_dir / name_or_path
        if "/" not in name_or_path and builtin.is_file():
            return BuiltinDefinition(path=builtin)

        if name_or_path in self.list_remote_releases():
            return RemoteRelease(version=name_or_path)

        raise DefinitionNotFound(f"definition not found: {name_or_path}")

    def load(self, resolved: ResolvedDefinition) -> Definition:
        """把解析结果转换为 Definition"""
        if isinstance(resolved, RemoteRelease):
            return self.remote_release_definition(resolved.version)
        return load_definition(resolved.path)

    def remote_release_definition(self, version: str) -> Definition:
        """为远程发布版本合成定义：下载发布 tar 包，标准构建"""
        url = self.config.release_tarball_url.format(version=version)
        return Definition(
            name=version,
            directives=(Directive(package=f"elixir-{version}", fetch=TarballFetch(url=url)),),
        )

    # ---- 新增 ----

    def add_definition(self, version: str) -> Path:
        """写入内置定义：从上游仓库按提交检出 version，标准构建

        不校验该提交是否真实存在，已存在的同名文件会被覆盖。
        """
        if not is_valid_package_name(version):
            raise ValidationError(f"无效的版本名: {version!r}")
        definition = Definition(
            name=version,
            directives=(Directive(
                package=f"elixir-{version}",
                fetch=GitShaFetch(url=self.config.upstream_repo, ref=version),
            ),),
        )
        path = self.definitions_dir / version
        save_definition(definition, path)
        logger.info("已写入定义: %s", path)
        return path
