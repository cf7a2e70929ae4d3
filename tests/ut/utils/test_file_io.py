"""文件读写工具单元测试"""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from qpm.core.exceptions import ValidationError
from qpm.utils.file_io import atomic_write, load_json, load_yaml, save_json
from qpm.utils.net import build_url, validate_url_scheme


class TestJson:
    def test_missing_returns_none(self, tmp_path: Path) -> None:
        assert load_json(tmp_path / "none.json") is None

    def test_save_creates_parent(self, tmp_path: Path) -> None:
        target = tmp_path / "a" / "b" / "doc.json"
        save_json(target, {"名称": "值"})
        assert "名称" in target.read_text(encoding="utf-8")
        assert load_json(target) == {"名称": "值"}

    def test_invalid_raises(self, tmp_path: Path) -> None:
        p = tmp_path / "bad.json"
        p.write_text("{", encoding="utf-8")
        with pytest.raises(json.JSONDecodeError):
            load_json(p)


class TestAtomicWrite:
    def test_no_temp_left(self, tmp_path: Path) -> None:
        target = tmp_path / "out.txt"
        atomic_write(target, "one")
        atomic_write(target, "two")
        assert target.read_text(encoding="utf-8") == "two"
        assert [p.name for p in tmp_path.iterdir()] == ["out.txt"]


class TestYaml:
    def test_non_dict_is_empty(self, tmp_path: Path) -> None:
        p = tmp_path / "list.yml"
        p.write_text("- a\n- b\n", encoding="utf-8")
        assert load_yaml(p) == {}

    def test_missing_is_empty(self, tmp_path: Path) -> None:
        assert load_yaml(tmp_path / "none.yml") == {}


class TestUrls:
    def test_segments_escaped(self) -> None:
        assert build_url("https://h/", "a/b", "1.0.0") == "https://h/a%2Fb/1.0.0"

    def test_query(self) -> None:
        assert build_url("https://h", "x", query={"limit": "0"}) == "https://h/x?limit=0"

    @pytest.mark.parametrize("url", ["file:///tmp", "ftp://h", "h/no-scheme"])
    def test_scheme_rejected(self, url: str) -> None:
        with pytest.raises(ValidationError):
            validate_url_scheme(url)

    def test_scheme_accepted(self) -> None:
        validate_url_scheme("http://localhost:8080")
