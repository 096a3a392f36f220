"""Smoke tests for the CLI entrypoint."""

import json
import os
from pathlib import Path

from click.testing import CliRunner

from tagsort.cli import cli


def test_cli_help_displays_commands() -> None:
    runner = CliRunner()
    result = runner.invoke(cli, ["--help"])

    assert result.exit_code == 0
    assert "tag-based rules" in result.output
    for command in ("run", "rules", "tags", "inspect", "log", "config"):
        assert command in result.output


def test_tags_lists_catalog(tmp_path: Path) -> None:
    runner = CliRunner()
    env = dict(os.environ, HOME=str(tmp_path))

    result = runner.invoke(cli, ["tags"], env=env)

    assert result.exit_code == 0
    assert "Folder" in result.output
    assert "Dummy" in result.output


def test_inspect_reports_matching_tags_as_json(tmp_path: Path) -> None:
    runner = CliRunner()
    env = dict(os.environ, HOME=str(tmp_path))
    folder = tmp_path / "inbox"
    folder.mkdir()
    (folder / "notes.txt").write_text("hello", encoding="utf-8")
    (folder / "empty").mkdir()

    result = runner.invoke(cli, ["inspect", str(folder), "--json"], env=env)

    assert result.exit_code == 0
    payload = json.loads(result.output)
    items = {Path(item["path"]).name: item for item in payload["items"]}
    # folders are listed first
    assert [Path(item["path"]).name for item in payload["items"]] == ["empty", "notes.txt"]
    assert "📁 Folder" in items["empty"]["tags"]
    assert "🐚 Empty" in items["empty"]["tags"]
    assert "📄 File" in items["notes.txt"]["tags"]
    assert "🐜 Small" in items["notes.txt"]["tags"]
    assert "📁 Folder" not in items["notes.txt"]["tags"]


def test_rules_add_list_and_remove(tmp_path: Path) -> None:
    runner = CliRunner()
    env = dict(os.environ, HOME=str(tmp_path))
    inbox = tmp_path / "inbox"
    inbox.mkdir()

    added = runner.invoke(
        cli,
        ["rules", "add", str(inbox), "--title", "sweep", "--action", "trash", "--tag", "File"],
        env=env,
    )
    assert added.exit_code == 0, added.output
    assert "Added rule #1" in added.output

    listed = runner.invoke(cli, ["rules", "list", "--json"], env=env)
    assert listed.exit_code == 0
    rules = json.loads(listed.output)["rules"]
    [rule] = rules[str(inbox.resolve())]
    assert rule["title"] == "sweep"
    assert rule["events"][0]["action"]["kind"] == "trash"

    removed = runner.invoke(cli, ["rules", "remove", str(inbox), "1"], env=env)
    assert removed.exit_code == 0
    listed = runner.invoke(cli, ["rules", "list", "--json"], env=env)
    assert json.loads(listed.output)["rules"] == {}


def test_rules_remove_rejects_unknown_index(tmp_path: Path) -> None:
    runner = CliRunner()
    env = dict(os.environ, HOME=str(tmp_path))

    result = runner.invoke(cli, ["rules", "remove", str(tmp_path), "3"], env=env)

    assert result.exit_code != 0


def test_unknown_tag_is_rejected(tmp_path: Path) -> None:
    runner = CliRunner()
    env = dict(os.environ, HOME=str(tmp_path))

    result = runner.invoke(
        cli,
        ["rules", "add", str(tmp_path), "--title", "t", "--action", "copy", "--tag", "Nope"],
        env=env,
    )

    assert result.exit_code != 0
    assert "Unknown tag" in result.output


def test_run_once_applies_rules_and_records_the_log(tmp_path: Path) -> None:
    runner = CliRunner()
    env = dict(os.environ, HOME=str(tmp_path))
    inbox = tmp_path / "inbox"
    archive = tmp_path / "archive"
    inbox.mkdir()
    archive.mkdir()
    (inbox / "notes.txt").write_text("hello", encoding="utf-8")
    (inbox / "photos").mkdir()

    added = runner.invoke(
        cli,
        [
            "rules",
            "add",
            str(inbox),
            "--title",
            "file away",
            "--action",
            "move",
            "--target",
            str(archive),
            "--tag",
            "File",
        ],
        env=env,
    )
    assert added.exit_code == 0, added.output

    ran = runner.invoke(cli, ["run", "--once", "--quiet"], env=env)
    assert ran.exit_code == 0, ran.output
    assert (archive / "notes.txt").exists()
    assert not (inbox / "notes.txt").exists()
    assert (inbox / "photos").is_dir()

    logged = runner.invoke(cli, ["log", "--json"], env=env)
    assert logged.exit_code == 0
    [entry] = json.loads(logged.output)["entries"]
    assert Path(entry["resulting_path"]) == archive / "notes.txt"
    assert entry["event"]["action"]["kind"] == "move"


def test_run_without_rules_warns(tmp_path: Path) -> None:
    runner = CliRunner()
    env = dict(os.environ, HOME=str(tmp_path))

    result = runner.invoke(cli, ["run", "--once"], env=env)

    assert result.exit_code == 0
    assert "No rules configured" in result.output


def test_bracketed_file_names_are_printed_literally(tmp_path: Path) -> None:
    runner = CliRunner()
    env = dict(os.environ, HOME=str(tmp_path))
    inbox = tmp_path / "inbox"
    archive = tmp_path / "archive"
    inbox.mkdir()
    archive.mkdir()
    (inbox / "[red]x.txt").write_text("x", encoding="utf-8")

    inspected = runner.invoke(cli, ["inspect", str(inbox)], env=env)
    assert inspected.exit_code == 0
    assert "[red]x.txt" in inspected.output

    runner.invoke(
        cli,
        ["rules", "add", str(inbox), "--title", "[b]keep", "--action", "copy"]
        + ["--target", str(archive), "--tag", "File"],
        env=env,
    )
    ran = runner.invoke(cli, ["run", "--once"], env=env)
    assert ran.exit_code == 0, ran.output
    assert "[red]x.txt" in ran.output.replace("\n", "")
