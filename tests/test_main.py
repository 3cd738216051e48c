from __future__ import annotations

import textwrap
from pathlib import Path

import pytest
from click.testing import CliRunner

from family_store.main import cli


@pytest.fixture()
def seed_path(tmp_path: Path) -> Path:
    content = textwrap.dedent("""\
        [[humans]]
        name = "Alice"
        sex = "F"
        birth = "1.1.1990"

        [[humans]]
        name = "Bob"
        sex = "M"
        birth = "10.3.1988"

        [[humans]]
        name = "Carol"
        sex = "F"
        father = 2
        mother = 1

        [[humans]]
        name = "alice"
        sex = "F"
    """)
    path = tmp_path / "family.toml"
    path.write_text(content, encoding="utf-8")
    return path


def _run(*args: str) -> tuple[int, str]:
    result = CliRunner().invoke(cli, list(args))
    return result.exit_code, result.output


class TestTree:
    def test_lists_everyone_in_id_order(self, seed_path: Path) -> None:
        code, output = _run("--input", str(seed_path), "tree")
        assert code == 0
        lines = output.splitlines()
        assert [line.split(":")[0] for line in lines] == ["1", "2", "3", "4"]
        assert lines[0] == "1: Alice (女) 1.1.1990"
        assert "父=2" in lines[2]
        assert "母=1" in lines[2]


class TestShow:
    def test_show_with_relations(self, seed_path: Path) -> None:
        code, output = _run("--input", str(seed_path), "show", "1")
        assert code == 0
        assert "子: 3: Carol" in output

    def test_show_missing(self, seed_path: Path) -> None:
        code, output = _run("--input", str(seed_path), "show", "99")
        assert code != 0
        assert "登録されていません" in output


class TestFind:
    def test_find_case_insensitive(self, seed_path: Path) -> None:
        code, output = _run("--input", str(seed_path), "find", "ALICE")
        assert code == 0
        assert len(output.splitlines()) == 2

    def test_find_none(self, seed_path: Path) -> None:
        code, output = _run("--input", str(seed_path), "find", "Zed")
        assert code == 0
        assert "該当する人物はいません" in output

    def test_find_with_config(self, seed_path: Path, tmp_path: Path) -> None:
        config = tmp_path / "custom.toml"
        config.write_text('[search]\nmatch = "substring"\ncase_sensitive = true\n', encoding="utf-8")
        code, output = _run("--input", str(seed_path), "--config", str(config), "find", "Ali")
        assert code == 0
        assert output.splitlines() == ["1: Alice (女) 1.1.1990"]


class TestSort:
    def test_sort_by_birth(self, seed_path: Path) -> None:
        code, output = _run("--input", str(seed_path), "sort", "--by", "birth")
        assert code == 0
        assert [line.split(":")[0] for line in output.splitlines()] == ["2", "1", "3", "4"]

    def test_sort_by_name_default(self, seed_path: Path) -> None:
        code, output = _run("--input", str(seed_path), "sort")
        assert code == 0
        assert [line.split(":")[0] for line in output.splitlines()] == ["1", "2", "3", "4"]


class TestErrors:
    def test_invalid_seed(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.toml"
        path.write_text('[[humans]]\nname = "A"\nsex = "X"\n', encoding="utf-8")
        code, output = _run("--input", str(path), "tree")
        assert code == 1
        assert "不正な性別値" in output

    def test_invalid_config(self, seed_path: Path, tmp_path: Path) -> None:
        config = tmp_path / "bad_config.toml"
        config.write_text('[sort]\nage_order = "random"\n', encoding="utf-8")
        code, output = _run("--input", str(seed_path), "--config", str(config), "tree")
        assert code == 1
        assert "sort.age_order" in output
