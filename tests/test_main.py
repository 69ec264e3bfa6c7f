"""Smoke tests for the command line interface."""

import pytest

import main
from config import BackupConfig, DatabaseConfig, config


@pytest.fixture
def cli(monkeypatch, tmp_path):
    monkeypatch.setattr(config, "database", DatabaseConfig(
        path=tmp_path / "data" / "dailygrow.json",
        backup_dir=tmp_path / "backups",
        max_backups=7,
    ))
    monkeypatch.setattr(config, "backup", BackupConfig(auto_backup=False))
    monkeypatch.setattr(config, "export_dir", tmp_path / "exports")
    monkeypatch.setattr(main, "setup_logging", lambda: None)
    return tmp_path


def test_habit_workflow(cli, capsys):
    assert main.main(["add-habit", "Read"]) == 0
    assert main.main(["toggle", "read", "--date", "2026-01-05"]) == 0
    assert main.main(["status", "--date", "2026-01-05"]) == 0

    out = capsys.readouterr().out
    assert "Created habit 'Read'" in out
    assert "'Read': completed" in out
    assert "[x] Read" in out


def test_errors_return_nonzero(cli, capsys):
    assert main.main(["toggle", "Missing"]) == 1
    assert main.main(["add-habit", "Read"]) == 0
    assert main.main(["freeze"]) == 1

    assert "Error:" in capsys.readouterr().err


def test_backup_restore_and_export(cli, capsys):
    main.main(["add-habit", "Read"])
    assert main.main(["backup"]) == 0
    backup = next((cli / "backups").glob("backup_*.json"))
    main.main(["add-habit", "Run"])

    assert main.main(["restore", str(backup)]) == 0
    assert main.main(["export", "csv"]) == 0
    assert main.main(["journal", "Хороший день", "--mood", "4", "--tags", "work,gym"]) == 0
    assert main.main(["stats", "--period", "month"]) == 0

    assert list((cli / "exports").glob("*.csv"))
    assert "Average mood: 4.0" in capsys.readouterr().out


def test_import_csv(cli, capsys):
    source = cli / "history.csv"
    source.write_text("date,habit,completed\n2026-01-01,Read,true\n", encoding="utf-8")

    assert main.main(["import-csv", str(source)]) == 0
    assert "Imported 1 completions, created 1 habits" in capsys.readouterr().out


def test_auto_backup_runs_before_commands(cli, monkeypatch):
    monkeypatch.setattr(config, "backup", BackupConfig(auto_backup=True))

    main.main(["add-habit", "Read"])

    assert len(list((cli / "backups").glob("backup_*"))) == 1
