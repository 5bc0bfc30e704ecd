"""
Command line tests using pytest.
"""

import pytest

import jtx_board


@pytest.fixture
def config_path(tmp_path):
    path = tmp_path / "jtx-board.toml"
    path.write_text(
        "[General]\n"
        f"database_file = \"{(tmp_path / 'jtx.db').as_posix()}\"\n"
        "uid_domain = \"cli.example\"\n"
        "\n"
        "[Collection.Work]\n"
        "display_name = \"Work\"\n",
        encoding="utf-8",
    )
    return path


def _run(capsys, *argv) -> tuple[int, str]:
    with pytest.raises(SystemExit) as exc_info:
        jtx_board.main(list(argv))
    return exc_info.value.code, capsys.readouterr().out


def test_new_progress_and_show(config_path, capsys) -> None:
    code, out = _run(capsys, "-c", str(config_path), "new", "todo", "--summary", "Write tests")
    assert code == 0
    icalobject_id = out.strip()

    code, out = _run(capsys, "-c", str(config_path), "progress", icalobject_id, "50")
    assert code == 0
    assert out.strip() == "50% IN-PROCESS"

    code, out = _run(capsys, "-c", str(config_path), "show", icalobject_id)
    assert code == 0
    assert "BEGIN:VTODO" in out
    assert "SUMMARY:Write tests" in out
    assert "PERCENT-COMPLETE:50" in out
    assert "@cli.example" in out


def test_list_shows_records(config_path, capsys) -> None:
    _run(capsys, "-c", str(config_path), "new", "note", "--summary", "First note")
    _run(capsys, "-c", str(config_path), "new", "journal", "--summary", "Diary")

    code, out = _run(capsys, "-c", str(config_path), "list")

    assert code == 0
    lines = out.strip().splitlines()
    assert len(lines) == 2
    assert lines[0].split("\t")[1:] == ["NOTE", "FINAL", "First note"]
    assert lines[1].split("\t")[1:] == ["JOURNAL", "FINAL", "Diary"]


def test_export_and_reimport(config_path, tmp_path, capsys) -> None:
    _run(capsys, "-c", str(config_path), "new", "todo", "--summary", "Exported")
    output = tmp_path / "out.ics"

    code, _ = _run(capsys, "-c", str(config_path), "export", "1", "-o", str(output))
    assert code == 0
    assert "SUMMARY:Exported" in output.read_text(encoding="utf-8")

    code, out = _run(capsys, "-c", str(config_path), "import", str(output))
    assert code == 0
    assert out.strip() == "Imported 0 records"

    code, out = _run(capsys, "-c", str(config_path), "import", str(output), "--collection", "99")
    assert code == 1


def test_configured_collection_is_created_once(config_path, capsys) -> None:
    _run(capsys, "-c", str(config_path), "list")
    _run(capsys, "-c", str(config_path), "list", "--collection", "2")

    code, _ = _run(capsys, "-c", str(config_path), "delete-collection", "2")
    assert code == 0
    code, _ = _run(capsys, "-c", str(config_path), "delete-collection", "3")
    assert code == 1


def test_unknown_record(config_path, capsys) -> None:
    assert _run(capsys, "-c", str(config_path), "show", "99")[0] == 1
    assert _run(capsys, "-c", str(config_path), "progress", "99", "10")[0] == 1


def test_invalid_progress_is_reported(config_path, capsys) -> None:
    _run(capsys, "-c", str(config_path), "new", "todo")
    assert _run(capsys, "-c", str(config_path), "progress", "1", "150")[0] == 1


def test_progress_on_journal_is_rejected(config_path, capsys) -> None:
    _run(capsys, "-c", str(config_path), "new", "journal", "--summary", "Diary")

    assert _run(capsys, "-c", str(config_path), "progress", "1", "50")[0] == 1

    code, out = _run(capsys, "-c", str(config_path), "list")
    assert code == 0
    assert out.strip().split("\t")[1:] == ["JOURNAL", "FINAL", "Diary"]


def test_missing_config_file(tmp_path, capsys) -> None:
    code, out = _run(capsys, "-c", str(tmp_path / "missing.toml"), "list")
    assert code == 1
    assert "Example configuration" in out
