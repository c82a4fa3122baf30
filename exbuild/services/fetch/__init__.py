"""源码获取策略

- sources.py: tarball / git / git_with_history / git_sha1 四种策略与策略表
"""

from exbuild.services.fetch.sources import (
    FETCH_STRATEGIES,
    GitHistorySource,
    GitShaSource,
    GitSource,
    TarballSource,
    fetch_package,
)

__all__ = [
    "FETCH_STRATEGIES",
    "TarballSource",
    "GitSource",
    "GitHistorySource",
    "GitShaSource",
    "fetch_package",
]
