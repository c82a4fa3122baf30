"""YAML 读写测试"""

from __future__ import annotations

import stat
from pathlib import Path

import pytest

from exbuild.utils.yaml_io import MAX_YAML_SIZE, load_yaml, save_yaml


class TestYamlIO:
    def test_save_and_load(self, tmp_path: Path) -> None:
        path = tmp_path / "nested" / "defs" / "1.0.0"
        save_yaml(path, {"packages": [{"name": "e", "ref": "1.10"}]})
        assert load_yaml(path) == {"packages": [{"name": "e", "ref": "1.10"}]}
        assert stat.S_IMODE(path.stat().st_mode) == 0o644
        assert [p.name for p in path.parent.iterdir()] == ["1.0.0"]

    def test_missing_and_empty(self, tmp_path: Path) -> None:
        assert load_yaml(tmp_path / "missing") == {}
        empty = tmp_path / "empty"
        empty.write_text("")
        assert load_yaml(empty) == {}

    def test_non_dict_top_level(self, tmp_path: Path) -> None:
        path = tmp_path / "list"
        path.write_text("- a\n- b\n")
        assert load_yaml(path) == {}

    def test_too_large(self, tmp_path: Path) -> None:
        path = tmp_path / "big"
        path.write_bytes(b"#" * (MAX_YAML_SIZE + 1))
        with pytest.raises(ValueError, match="过大"):
            load_yaml(path)
