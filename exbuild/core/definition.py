"""定义文件解析

定义文件是声明式 YAML，不执行任何代码：

    packages:
      - name: elixir-1.0.5
        fetch: tarball
        url: https://example.com/elixir-1.0.5.tar.gz
        build: [standard]

解析阶段就校验获取策略与构建步骤名，未知名称在任何子进程启动前报错。
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Any

import yaml

from exbuild.core.exceptions import BuildError, DefinitionError
from exbuild.core.models import (
    DEFAULT_BUILD_STEPS,
    FETCH_SPECS,
    Definition,
    Directive,
    FetchSpec,
    TarballFetch,
)
from exbuild.utils.yaml_io import load_yaml, save_yaml

logger = logging.getLogger(__name__)

# 包名即 <work_dir> 下的目录名，必须是单层普通名称
_PACKAGE_NAME_RE = re.compile(r"[A-Za-z0-9][A-Za-z0-9._-]*")


def is_valid_package_name(name: object) -> bool:
    return isinstance(name, str) and _PACKAGE_NAME_RE.fullmatch(name) is not None


def _known_steps() -> frozenset[str]:
    from exbuild.services.build.steps import BUILD_STEPS
    return frozenset(BUILD_STEPS)


def _step_list(raw: Any, field_name: str, package: str, known: frozenset[str]) -> tuple[str, ...]:
    if raw is None:
        return ()
    if isinstance(raw, str):
        raw = [raw]
    if not isinstance(raw, list) or not all(isinstance(s, str) for s in raw):
        raise DefinitionError(f"{package}: {field_name} 必须是步骤名列表")
    for step in raw:
        if step not in known:
            raise BuildError(f"no such build step: {step}")
    return tuple(raw)


def _parse_fetch(entry: dict[str, Any], package: str) -> FetchSpec:
    strategy = entry.get("fetch", "")
    spec_cls = FETCH_SPECS.get(strategy)
    if spec_cls is None:
        raise DefinitionError(
            f"{package}: 不支持的获取策略 {strategy!r}，"
            f"可选: {', '.join(sorted(FETCH_SPECS))}"
        )
    url = entry.get("url")
    if not url or not isinstance(url, str):
        raise DefinitionError(f"{package}: 缺少 url")
    if spec_cls is TarballFetch:
        return TarballFetch(url=url)
    ref = entry.get("ref")
    if ref is None or str(ref) == "":
        raise DefinitionError(f"{package}: {strategy} 策略必须指定 ref")
    return spec_cls(url=url, ref=str(ref))


def parse_definition(data: dict[str, Any], name: str, source: str = "") -> Definition:
    """把已加载的 YAML 字典转换为 Definition"""
    packages = data.get("packages")
    if not isinstance(packages, list) or not packages:
        raise DefinitionError(f"定义 {name} 中没有 packages 列表")

    known = _known_steps()
    directives: list[Directive] = []
    for i, entry in enumerate(packages):
        if not isinstance(entry, dict):
            raise DefinitionError(f"定义 {name} 第 {i + 1} 个包格式错误")
        package = entry.get("name")
        if not is_valid_package_name(package):
            raise DefinitionError(f"定义 {name} 第 {i + 1} 个包名无效: {package!r}")
        steps = _step_list(entry.get("build"), "build", package, known)
        directives.append(Directive(
            package=package,
            fetch=_parse_fetch(entry, package),
            build_steps=steps or DEFAULT_BUILD_STEPS,
            before_install=_step_list(entry.get("before_install"), "before_install", package, known),
            after_install=_step_list(entry.get("after_install"), "after_install", package, known),
        ))
    return Definition(name=name, directives=tuple(directives), source=source)


def load_definition(path: Path) -> Definition:
    """读取并解析定义文件"""
    try:
        data = load_yaml(path)
    except (yaml.YAMLError, ValueError) as e:
        raise DefinitionError(f"无法解析定义文件 {path}: {e}") from e
    return parse_definition(data, name=path.name, source=str(path))


def dump_definition(definition: Definition) -> dict[str, Any]:
    """Definition → 可写入 YAML 的字典"""
    packages: list[dict[str, Any]] = []
    for d in definition.directives:
        entry: dict[str, Any] = {
            "name": d.package,
            "fetch": d.fetch.strategy,
            "url": d.fetch.url,
        }
        ref = getattr(d.fetch, "ref", None)
        if ref is not None:
            entry["ref"] = ref
        entry["build"] = list(d.build_steps)
        if d.before_install:
            entry["before_install"] = list(d.before_install)
        if d.after_install:
            entry["after_install"] = list(d.after_install)
        packages.append(entry)
    return {"packages": packages}


def save_definition(definition: Definition, path: Path) -> None:
    save_yaml(path, dump_definition(definition))
