"""shell.py 单元测试"""

from __future__ import annotations

import io
import sys
from pathlib import Path

import pytest

from exbuild.core.exceptions import BuildError, ExBuildError
from exbuild.utils.shell import LocalExecutor, get_executor, run_logged, set_executor


class TestLocalExecutor:
    def test_output_goes_to_log(self, tmp_path: Path) -> None:
        log_path = tmp_path / "build.log"
        with open(log_path, "ab", buffering=0) as log:
            rc = LocalExecutor().execute(
                [sys.executable, "-c", "import sys; print('out'); print('err', file=sys.stderr)"],
                cwd=tmp_path, log=log,
            )
        assert rc == 0
        text = log_path.read_text()
        assert "out" in text
        assert "err" in text

    def test_returncode(self, tmp_path: Path) -> None:
        with open(tmp_path / "log", "ab", buffering=0) as log:
            rc = LocalExecutor().execute(
                [sys.executable, "-c", "raise SystemExit(3)"], cwd=tmp_path, log=log,
            )
        assert rc == 3

    def test_which(self) -> None:
        assert LocalExecutor().which("definitely-not-a-real-tool-xyz") is None


class TestRunLogged:
    def test_success_writes_command_line(self, fake_executor, tmp_path: Path) -> None:
        log = io.BytesIO()
        run_logged(["make", "-j", "2"], cwd=tmp_path, log=log, label="make")
        assert log.getvalue().startswith(b"+ make -j 2\n")

    def test_failure_raises_given_type(self, fake_executor, tmp_path: Path) -> None:
        fake_executor.fail_make = True
        with pytest.raises(BuildError, match=r"mybuild 失败 \(rc=2\)"):
            run_logged(["make"], cwd=tmp_path, log=io.BytesIO(), label="mybuild", error=BuildError)

    def test_default_error_type(self, fake_executor, tmp_path: Path) -> None:
        fake_executor.fail_make = True
        with pytest.raises(ExBuildError, match="cmd 失败"):
            run_logged(["make"], cwd=tmp_path, log=io.BytesIO())


def test_set_executor_roundtrip(fake_executor) -> None:
    assert get_executor() is fake_executor
    set_executor(LocalExecutor())
    assert isinstance(get_executor(), LocalExecutor)
    set_executor(fake_executor)
