"""网络工具：URL 校验、HTTP 客户端查找、发布 API 读取"""

from __future__ import annotations

import logging
import urllib.request
from urllib.parse import urlparse

from exbuild.core.exceptions import MissingDependency, ValidationError
from exbuild.utils.shell import get_executor

logger = logging.getLogger(__name__)

_ALLOWED_SCHEMES = frozenset(("http", "https"))

_HTTP_REMEDY = (
    "exbuild: please install `curl` or `wget` and try again"
)


def validate_url_scheme(url: str, *, context: str = "") -> None:
    """校验 URL 仅使用 http/https

    Raises:
        ValidationError: URL scheme 不在白名单内
    """
    parsed = urlparse(url)
    if parsed.scheme not in _ALLOWED_SCHEMES:
        label = f" ({context})" if context else ""
        raise ValidationError(
            f"不允许的 URL 协议 '{parsed.scheme}'{label}，"
            f"仅支持 http/https: {url}"
        )


def download_command(url: str, dest: str) -> list[str]:
    """返回下载命令行，优先 curl，其次 wget

    Raises:
        MissingDependency: 两者都不存在
    """
    executor = get_executor()
    if executor.which("curl"):
        return ["curl", "-q", "-fL", "-o", dest, url]
    if executor.which("wget"):
        return ["wget", "-nv", "-O", dest, url]
    raise MissingDependency("no HTTP client found", remedy=_HTTP_REMEDY)


def fetch_text(url: str, *, timeout: int = 30) -> str:
    """GET 请求并以 utf-8 文本返回响应体"""
    validate_url_scheme(url, context="release api")
    req = urllib.request.Request(
        url, headers={"Accept": "application/vnd.github+json"},
    )
    with urllib.request.urlopen(req, timeout=timeout) as resp:  # nosec B310
        return resp.read().decode("utf-8", errors="replace")
