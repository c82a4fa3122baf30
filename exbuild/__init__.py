"""exbuild - Elixir 运行时版本构建安装工具"""

__version__ = "0.3.0"
