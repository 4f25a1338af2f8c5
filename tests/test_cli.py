import types

import pytest

from study_notes import cli
from study_notes.identity import USER_ENV
from study_notes.store import read_jsonl


@pytest.fixture(autouse=True)
def reset_metadata(monkeypatch):
    """Ensure metadata.version is controllable during tests."""

    def fake_version(name: str) -> str:
        assert name == "study-notes"
        return "0.0-test"

    monkeypatch.setattr(cli.metadata, "version", fake_version)
    yield


def _stub_module(monkeypatch, expected: str, main):
    def fake_import(module_name: str):
        assert module_name == expected
        return types.SimpleNamespace(main=main)

    monkeypatch.setattr(cli, "import_module", fake_import)


def test_version_command_handles_missing_package(monkeypatch, capsys):
    def missing(_name):
        raise cli.metadata.PackageNotFoundError()

    monkeypatch.setattr(cli.metadata, "version", missing)
    code = cli.main(["version"])
    captured = capsys.readouterr()
    assert code == 0
    assert captured.out.strip() == "unknown"


@pytest.mark.parametrize("flag", ["version", "--version", "-V"])
def test_version_variants(flag, capsys):
    code = cli.main([flag])
    captured = capsys.readouterr()
    assert code == 0
    assert captured.out.strip() == "0.0-test"


def test_no_args_prints_usage_and_returns_error(capsys):
    code = cli.main([])
    captured = capsys.readouterr()
    assert code == 2
    assert "Usage: study-notes" in captured.out
    assert "Available commands:" in captured.out


@pytest.mark.parametrize("argv", [["--help"], ["-h"], ["help"]])
def test_help_shows_usage(argv, capsys):
    code = cli.main(argv)
    captured = capsys.readouterr()
    assert code == 0
    assert "Usage: study-notes" in captured.out


def test_list_outputs_command_table(capsys):
    code = cli.main(["list"])
    captured = capsys.readouterr()
    assert code == 0
    assert "Available commands:" in captured.out
    for name in ("init", "notes", "quiz"):
        assert name in captured.out
    assert "(TUI)" in captured.out


def test_help_known_command(capsys):
    code = cli.main(["help", "quiz"])
    captured = capsys.readouterr()
    assert code == 0
    assert "Run `study-notes quiz --help`" in captured.out


@pytest.mark.parametrize("argv", [["help", "does-not-exist"], ["bogus"]])
def test_unknown_command_errors(argv, capsys):
    code = cli.main(argv)
    captured = capsys.readouterr()
    assert code == 2
    assert "Unknown command" in captured.err
    assert "Available commands:" in captured.err


def test_dispatch_invokes_module_main_with_passthrough(monkeypatch):
    captured = {}

    def stub_main(argv):
        captured["argv"] = argv
        return 7

    _stub_module(monkeypatch, "study_notes.notes.cli", stub_main)
    code = cli.main(["notes", "list", "--subject", "bio"])
    assert code == 7
    assert captured["argv"] == ["list", "--subject", "bio"]


@pytest.mark.parametrize(
    "exit_value, expected", [(5, 5), (None, 0), ("boom", 1)]
)
def test_dispatch_normalizes_system_exit(monkeypatch, capsys, exit_value, expected):
    def stub_main(argv):
        raise SystemExit(exit_value)

    _stub_module(monkeypatch, "study_notes.quizzer._main", stub_main)
    code = cli.main(["quiz", "list"])
    assert code == expected
    if exit_value == "boom":
        assert capsys.readouterr().err.strip() == "boom"


def test_dispatch_normalizes_non_int_return(monkeypatch):
    _stub_module(monkeypatch, "study_notes.workspace.cli", lambda argv: "done")
    assert cli.main(["init"]) == 0


def test_cli_runs_init_end_to_end(tmp_path, capsys):
    target = tmp_path / "workspace"

    code = cli.main(["init", "--path", str(target)])

    captured = capsys.readouterr()
    assert code == 0
    assert "Workspace ready" in captured.out
    for entry in ("config", "logs", "records"):
        assert (target / entry).is_dir()
    assert (target / "config" / "study-notes.toml").exists()


def test_cli_notes_then_quiz_end_to_end(tmp_path, monkeypatch, capsys):
    monkeypatch.setenv(USER_ENV, "alice")
    workspace = str(tmp_path / "ws")
    content = (
        "The mitochondria is the powerhouse of the cell. "
        "Photosynthesis occurs in chloroplasts. "
        "Ribosomes assemble proteins from amino acid chains."
    )

    assert cli.main(
        ["notes", "--workspace", workspace, "add", "--title", "Cells",
         "--content", content]
    ) == 0
    assert cli.main(["notes", "--workspace", workspace, "list"]) == 0
    assert "Cells" in capsys.readouterr().out

    records = tmp_path / "ws" / "records"
    (note,) = read_jsonl(records / "notes.jsonl")
    note_id = note["id"]
    assert cli.main(
        ["quiz", "--workspace", workspace, "generate", note_id, "--num", "3"]
    ) == 0
    assert len(read_jsonl(records / "quiz_questions.jsonl")) == 3
