"""统一异常体系

所有业务异常继承 ExBuildError。CLI 层据此输出友好提示，
会话层据此进入统一的失败处理路径（横幅 + 日志尾部 + 退出码 1）。
"""

from __future__ import annotations


class ExBuildError(Exception):
    """基础异常"""

    code: str = "UNKNOWN"

    def __init__(self, message: str) -> None:
        super().__init__(message)


class UsageError(ExBuildError):
    """命令行参数缺失"""

    code = "USAGE_ERROR"


class ConfigError(ExBuildError):
    """配置文件内容无效"""

    code = "CONFIG_ERROR"


class ValidationError(ExBuildError):
    """输入数据校验失败"""

    code = "VALIDATION_ERROR"


class DefinitionNotFound(ExBuildError):
    """按名称/路径/远程版本均找不到定义"""

    code = "DEFINITION_NOT_FOUND"


class DefinitionError(ExBuildError):
    """定义文件结构错误或引用了未知的获取策略"""

    code = "DEFINITION_ERROR"


class MissingDependency(ExBuildError):
    """宿主机缺少 HTTP 客户端或 git"""

    code = "MISSING_DEPENDENCY"

    def __init__(self, message: str, remedy: str = "") -> None:
        super().__init__(message)
        self.remedy = remedy

    def __str__(self) -> str:
        base = super().__str__()
        return f"{base}\n{self.remedy}" if self.remedy else base


class FetchError(ExBuildError):
    """源码获取失败"""

    code = "FETCH_ERROR"


class UnknownRevision(FetchError):
    """git_sha1 检出指定提交失败"""

    code = "UNKNOWN_REVISION"


class BuildError(ExBuildError):
    """构建步骤失败或步骤不存在"""

    code = "BUILD_ERROR"


class SessionInterrupted(ExBuildError):
    """会话被终止信号中断"""

    code = "INTERRUPTED"
