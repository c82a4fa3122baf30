"""构建步骤模块

- steps.py: 构建步骤表（standard / make / copy / check）与执行器
- permissions.py: 安装目录权限修正
"""

from exbuild.services.build.permissions import fix_directory_permissions
from exbuild.services.build.steps import BUILD_STEPS, build_package, build_step

__all__ = ["BUILD_STEPS", "build_package", "build_step", "fix_directory_permissions"]
