"""构建会话测试：路径生成与资源释放"""

from __future__ import annotations

import logging
import os
from pathlib import Path

import pytest

from exbuild.core.config import Config
from exbuild.core.models import SessionState
from exbuild.services.session import BuildSession, new_context, session_seed


class TestNewContext:
    def test_seeded_paths(self, cfg: Config, tmp_path: Path) -> None:
        ctx = new_context(cfg, tmp_path / "prefix")
        tmp = Path(cfg.tmp_dir).resolve()
        assert ctx.work_dir.parent == tmp
        assert ctx.work_dir.name.startswith("exbuild.")
        assert ctx.work_dir.name.endswith(f".{os.getpid()}")
        assert ctx.log_path == tmp / f"{ctx.work_dir.name}.log"
        assert ctx.prefix.is_absolute()
        assert ctx.make_opts == ("-j", "2")

    def test_seed_format(self) -> None:
        stamp, pid = session_seed().split(".")
        assert len(stamp) == 14 and stamp.isdigit()
        assert pid == str(os.getpid())

    def test_no_files_created(self, cfg: Config, tmp_path: Path) -> None:
        new_context(cfg, tmp_path / "prefix")
        assert list(Path(cfg.tmp_dir).iterdir()) == []


class TestBuildSession:
    def test_enter_creates_and_exit_releases(self, cfg: Config, tmp_path: Path) -> None:
        ctx = new_context(cfg, tmp_path / "prefix")
        session = BuildSession(ctx)
        with session:
            assert ctx.work_dir.is_dir()
            assert ctx.log_path.is_file()
            assert session.state == SessionState.WORKDIR_CREATED
            assert session.log is not None
        assert session.log is None
        assert not any(
            isinstance(h, logging.FileHandler) for h in logging.getLogger("exbuild").handlers
        )

    def test_error_recorded_in_log(self, cfg: Config, tmp_path: Path) -> None:
        ctx = new_context(cfg, tmp_path / "prefix")
        with pytest.raises(RuntimeError):
            with BuildSession(ctx):
                raise RuntimeError("boom")
        assert "RuntimeError: boom" in ctx.log_path.read_text()

    def test_progress_appended_to_log(self, cfg: Config, tmp_path: Path) -> None:
        ctx = new_context(cfg, tmp_path / "prefix")
        logger = logging.getLogger("exbuild.test")
        logger.setLevel(logging.INFO)
        try:
            with BuildSession(ctx):
                logger.info("Installing demo...")
        finally:
            logger.setLevel(logging.NOTSET)
        assert "Installing demo..." in ctx.log_path.read_text()

    def test_finish_keep(self, cfg: Config, tmp_path: Path) -> None:
        ctx = new_context(cfg, tmp_path / "prefix", keep=True)
        session = BuildSession(ctx)
        with session:
            pass
        session.finish()
        assert session.state == SessionState.DONE
        assert ctx.work_dir.is_dir()
