"""安装目录权限修正"""

from __future__ import annotations

import logging
import os
import stat
from pathlib import Path

logger = logging.getLogger(__name__)

_GROUP_OTHER_WRITE = stat.S_IWGRP | stat.S_IWOTH


def fix_directory_permissions(prefix: Path) -> int:
    """去掉 prefix 下所有目录（含 prefix 本身）的组/其他用户写权限

    部分工具拒绝在全局可写目录下工作。返回修改过的目录数。
    """
    if not prefix.is_dir():
        return 0
    changed = 0
    for root, _dirs, _files in os.walk(prefix):
        mode = os.stat(root).st_mode
        if mode & _GROUP_OTHER_WRITE:
            os.chmod(root, stat.S_IMODE(mode) & ~_GROUP_OTHER_WRITE)
            changed += 1
    logger.debug("权限修正: %s (%d 个目录)", prefix, changed)
    return changed
