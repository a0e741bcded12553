"""Tests for quiet-command classification."""

import pytest

from codechat.terminal.classify import CommandKind, classify_command, is_quiet_command


class TestClassifyCommand:
    @pytest.mark.parametrize(
        "command",
        ["cat README.md", "type notes.txt", "Get-Content app.py", "gc x", "CAT file"],
    )
    def test_content(self, command):
        assert classify_command(command) is CommandKind.CONTENT

    @pytest.mark.parametrize("command", ["ls", "ls -la src", "dir", "Get-ChildItem", "gci ."])
    def test_listing(self, command):
        assert classify_command(command) is CommandKind.LISTING

    @pytest.mark.parametrize(
        "command",
        ["npm test", "python -m pytest", "git status", "", "   ", "concatenate x"],
    )
    def test_other(self, command):
        assert classify_command(command) is CommandKind.OTHER

    @pytest.mark.parametrize(
        "command",
        [
            "cat a.txt | grep x",
            "ls; rm -rf build",
            "cat a > b",
            "ls && make",
            "cat $(echo secret)",
            "cat < in.txt",
        ],
    )
    def test_compound_commands_are_other(self, command):
        assert classify_command(command) is CommandKind.OTHER


class TestIsQuiet:
    def test_quiet(self):
        assert is_quiet_command("cat pyproject.toml")
        assert is_quiet_command("  ls src  ")

    def test_loud(self):
        assert not is_quiet_command("pytest")
        assert not is_quiet_command("ls | wc -l")
