"""集中配置管理

配置来源优先级（高 → 低）：环境变量 > YAML 配置文件 > 默认值。
会话开始时读取一次，之后不再变化。
"""

from __future__ import annotations

import logging
import os
import shlex
from dataclasses import dataclass, fields
from pathlib import Path

import yaml

from exbuild.core.exceptions import ConfigError
from exbuild.utils.yaml_io import load_yaml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = "~/.config/exbuild/config.yml"
BUILTIN_DEFINITIONS_DIR = Path(__file__).resolve().parent.parent / "share" / "definitions"

# 环境变量 -> 配置字段，列表中靠前的变量优先
_ENV_OVERRIDES: dict[str, tuple[str, ...]] = {
    "build_path": ("EXBUILD_BUILD_PATH",),
    "tmp_dir": ("EXBUILD_TMPDIR", "TMPDIR"),
    "make_opts": ("EXBUILD_MAKE_OPTS", "MAKE_OPTS"),
    "definitions_dir": ("EXBUILD_DEFINITIONS",),
    "log_level": ("EXBUILD_LOG_LEVEL",),
}


@dataclass
class Config:
    """全局配置"""

    # 目录
    build_path: str = ""  # 非空时作为工作目录，不再按时间戳+pid 生成
    tmp_dir: str = "/tmp"
    definitions_dir: str = str(BUILTIN_DEFINITIONS_DIR)

    # 构建
    make_opts: str = "-j 2"

    # 日志
    log_level: str = "INFO"
    log_json: bool = False

    # 上游
    upstream_repo: str = "https://github.com/elixir-lang/elixir.git"
    releases_api: str = "https://api.github.com/repos/elixir-lang/elixir/releases?per_page=100"
    release_tarball_url: str = "https://api.github.com/repos/elixir-lang/elixir/tarball/v{version}"
    api_timeout: int = 30

    @classmethod
    def from_file(cls, path: str = DEFAULT_CONFIG_FILE) -> Config:
        """从 YAML 文件加载配置，不存在则返回默认"""
        try:
            data = load_yaml(Path(path).expanduser())
        except (yaml.YAMLError, ValueError) as e:
            raise ConfigError(f"无法读取配置文件 {path}: {e}") from e
        if not data:
            return cls()
        known = {f.name for f in fields(cls)}
        matched = {k: v for k, v in data.items() if k in known}
        unknown = sorted(str(k) for k in data if k not in known)
        if unknown:
            logger.warning("配置文件 %s 中的未知字段已忽略: %s", path, ", ".join(unknown))
        try:
            cfg = cls(**matched)
        except TypeError as e:
            raise ConfigError(f"配置文件无效: {path}: {e}") from e
        return cfg

    def apply_env(self, environ: dict[str, str] | None = None) -> Config:
        """用环境变量覆盖对应字段（原地修改并返回自身）"""
        env = os.environ if environ is None else environ
        for attr, names in _ENV_OVERRIDES.items():
            for name in names:
                value = env.get(name)
                if value:
                    setattr(self, attr, value)
                    break
        if env.get("EXBUILD_LOG_JSON") == "1":
            self.log_json = True
        return self

    @property
    def make_args(self) -> tuple[str, ...]:
        """拆分后的 make 参数"""
        try:
            return tuple(shlex.split(self.make_opts))
        except ValueError as e:
            raise ConfigError(f"make 参数无法解析: {self.make_opts!r}") from e


# 全局单例，由 CLI 入口显式初始化
_current: Config | None = None


def get_config() -> Config:
    """获取当前配置（未初始化则返回默认值叠加环境变量）"""
    global _current  # noqa: PLW0603
    if _current is None:
        _current = Config().apply_env()
    return _current


def init_config(path: str = "") -> Config:
    """从文件 + 环境变量初始化全局配置"""
    global _current  # noqa: PLW0603
    path = path or os.environ.get("EXBUILD_CONFIG", DEFAULT_CONFIG_FILE)
    _current = Config.from_file(path).apply_env()
    logger.debug("配置已加载: %s", path)
    return _current


def reset_config() -> None:
    """清除全局配置（测试用）"""
    global _current  # noqa: PLW0603
    _current = None
