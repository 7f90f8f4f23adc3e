"""Tests for the tnote command line."""

from datetime import datetime, timezone

import pytest

from tnote import __version__
from tnote.cli import main, parse_global_options
from tnote.errors import InvalidArgumentError


@pytest.fixture
def run(db_path, capsys):
    """Run tnote against the test database; returns (exit code, stdout, stderr)."""
    def _run(*args):
        code = main(["--db", str(db_path), *args])
        out, err = capsys.readouterr()
        return code, out, err
    return _run


def test_buy_milk_scenario(run):
    today = datetime.now(timezone.utc).strftime("%Y-%m-%d")

    code, out, _ = run("add", "Buy milk", "2% milk, 1 gal")
    assert code == 0
    assert out == "Added note 1: Buy milk\n"

    code, out, _ = run("list")
    assert code == 0
    assert out == f"1\t{today}\tBuy milk\n"

    code, out, _ = run("view", "1")
    assert code == 0
    lines = out.splitlines()
    assert lines[0] == "ID: 1"
    assert lines[1] == "Title: Buy milk"
    assert lines[2].startswith(f"Date: {today}T") and lines[2].endswith("Z")
    assert lines[4] == "2% milk, 1 gal"


def test_list_is_sorted_by_id(run):
    for title in ("one", "two", "three"):
        run("add", title, "")
    run("rm", "2")

    _, out, _ = run("list")

    assert [line.split("\t")[0] for line in out.splitlines()] == ["1", "3"]


def test_list_empty_prints_nothing(run):
    assert run("list") == (0, "", "")


def test_view_missing_note(run):
    code, out, err = run("view", "99")

    assert code == 1
    assert out == ""
    assert err == "Error: note 99 not found\n"


def test_invalid_id_fails_before_touching_storage(run, db_path):
    code, _, err = run("view", "abc")

    assert code == 1
    assert "invalid note id" in err
    assert not db_path.exists()


@pytest.mark.parametrize("args", [("add", "only title"), ("view",), ("list", "extra"), ("find",)])
def test_wrong_arguments(run, db_path, args):
    code, _, err = run(*args)

    assert code == 1
    assert err.startswith("Error: ")
    assert not db_path.exists()


def test_unknown_command(run):
    code, _, err = run("frobnicate")

    assert code == 1
    assert "unknown command" in err


def test_done_toggles_completion(run, store_path_note):
    code, out, _ = run("done", "1")
    assert (code, out) == (0, "Completed: 1\n")

    code, out, _ = run("done", "1")
    assert (code, out) == (0, "Reopened: 1\n")


def test_rm(run, store_path_note):
    assert run("rm", "1") == (0, "Deleted note 1\n", "")
    code, _, err = run("rm", "1")
    assert code == 1
    assert "not found" in err


def test_find_matches_title_and_body(run):
    run("add", "Groceries", "eggs, milk")
    run("add", "Books", "Dune")
    run("add", "Errands", "return library books")

    _, out, _ = run("find", "books")

    assert "Books" in out
    assert "Errands" in out
    assert "Groceries" not in out

    _, out, _ = run("find", "nothing-like-this")
    assert "No notes matching" in out


def test_health_report(run):
    run("add", "a", "b")

    code, out, _ = run("health")

    assert code == 0
    assert "Database: OK (1 notes, last id 1" in out


def test_db_path_from_environment(tmp_path, monkeypatch, capsys):
    path = tmp_path / "env.db"
    monkeypatch.setenv("TNOTE_DB", str(path))

    assert main(["add", "t", "b"]) == 0
    assert path.exists()


def test_db_flag_expands_tilde(tmp_path, capsys):
    assert main(["add", "--db", "~/tilde.db", "t", "b"]) == 0

    assert (tmp_path / "home" / "tilde.db").exists()


def test_default_db_lives_in_data_dir(tmp_path, capsys):
    assert main(["add", "t", "b"]) == 0

    assert (tmp_path / "data" / "tnote" / "notes.db").exists()


def test_bad_config_value_exits_with_error(run):
    from tnote.config import get_config_path

    path = get_config_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text('[storage]\nlock_timeout = "soon"\n')

    code, out, err = run("list")

    assert code == 1
    assert err.startswith("Error:")
    assert "lock_timeout" in err


def test_locked_database_fails_fast(db_path, store, capsys):
    code = main(["--db", str(db_path), "list"])

    _, err = capsys.readouterr()
    assert code == 1
    assert "timed out" in err


def test_help_and_version(capsys):
    assert main([]) == 0
    assert "Usage:" in capsys.readouterr().out

    assert main(["--version"]) == 0
    assert capsys.readouterr().out == f"tnote {__version__}\n"


def test_parse_global_options():
    assert parse_global_options(["--db", "x.db", "list"]) == ("x.db", ["list"])
    assert parse_global_options(["list", "--db=y.db"]) == ("y.db", ["list"])
    assert parse_global_options(["add", "--", "--db", "body"]) == (None, ["add", "--db", "body"])

    with pytest.raises(InvalidArgumentError):
        parse_global_options(["list", "--db"])


@pytest.fixture
def store_path_note(db_path):
    from tnote.store import Store

    with Store(db_path) as s:
        s.add("note", "body")
