"""Tests for command splitting and root extraction.

These tests only tokenize command strings - no execution occurs.
"""

import pytest

from agentic_guard.shell import (
    CommandTokenizer,
    canonical_command,
    get_command_root,
    get_command_roots,
    split_commands,
    strip_shell_wrapper,
)


class TestSplitCommands:
    """Tests for splitting a command line into sub-commands."""

    def test_single_command(self):
        """Test a command without separators is returned whole."""
        assert split_commands("ls -la") == ["ls -la"]

    def test_and_chain(self):
        """Test splitting on &&."""
        assert split_commands("git status && npm test") == ["git status", "npm test"]

    def test_all_separators(self):
        """Test ;, &&, ||, & and | all separate commands."""
        result = split_commands("a; b && c || d & e | f")
        assert result == ["a", "b", "c", "d", "e", "f"]

    def test_separator_inside_single_quotes(self):
        """Test separators inside single quotes are kept."""
        assert split_commands("echo 'a;b' ; echo c") == ["echo 'a;b'", "echo c"]

    def test_separator_inside_double_quotes(self):
        """Test separators inside double quotes are kept."""
        assert split_commands('echo "x && y" && ls') == ['echo "x && y"', "ls"]

    def test_quotes_are_not_stripped(self):
        """Test quoting survives tokenization."""
        assert split_commands("git commit -m \"fix: a|b\"") == ['git commit -m "fix: a|b"']

    def test_escaped_separator(self):
        """Test a backslash-escaped separator is not a separator."""
        assert split_commands(r"echo a\;b; ls") == [r"echo a\;b", "ls"]

    def test_backslash_inside_single_quotes_is_literal(self):
        """Test a backslash cannot escape the closing single quote."""
        assert split_commands(r"echo 'a\'; ls") == [r"echo 'a\'", "ls"]

    def test_single_quote_inside_double_quotes(self):
        """Test an apostrophe in double quotes does not open a single quote."""
        assert split_commands("echo \"it's\"; ls") == ["echo \"it's\"", "ls"]

    def test_unterminated_quote(self):
        """Test an unterminated quote swallows the rest without raising."""
        assert split_commands('echo "a; b && c') == ['echo "a; b && c']

    def test_empty_segments_dropped(self):
        """Test empty sub-commands are dropped."""
        assert split_commands(" ; ;; ls ;") == ["ls"]
        assert split_commands("") == []

    def test_segments_are_trimmed(self):
        """Test sub-commands are trimmed."""
        assert split_commands("  ls   &&   pwd  ") == ["ls", "pwd"]

    def test_newline_separates_commands(self):
        """Test an unquoted line break ends a command like ;."""
        assert split_commands("echo hi\nrm -rf /") == ["echo hi", "rm -rf /"]
        assert split_commands("echo hi\r\nls") == ["echo hi", "ls"]

    def test_newline_inside_quotes_kept(self):
        """Test a quoted line break stays inside its command."""
        assert split_commands("git commit -m 'one\ntwo'") == ["git commit -m 'one\ntwo'"]
        assert split_commands('echo "a\nb"') == ['echo "a\nb"']


class TestCommandRoot:
    """Tests for root extraction."""

    @pytest.mark.parametrize(
        "command,expected",
        [
            ("ls -la /tmp", "ls"),
            ('"/usr/bin/git" status', "git"),
            ("'git' status", "git"),
            ("/bin/ls", "ls"),
            (r"C:\Windows\System32\cmd.exe /c dir", "cmd.exe"),
            ("  npm   test  ", "npm"),
        ],
    )
    def test_root(self, command, expected):
        """Test the executable name is extracted and unqualified."""
        assert get_command_root(command) == expected

    def test_empty_has_no_root(self):
        """Test empty or blank input yields None."""
        assert get_command_root("") is None
        assert get_command_root("   ") is None

    def test_roots_of_command_line(self):
        """Test roots are collected for every sub-command."""
        assert get_command_roots("git status && /usr/bin/npm test | grep ok") == [
            "git",
            "npm",
            "grep",
        ]

    def test_roots_across_lines(self):
        """Test every line of a multi-line command contributes a root."""
        assert get_command_roots("echo hi\n/bin/rm -rf /") == ["echo", "rm"]

    def test_roots_of_empty_command(self):
        """Test an empty command line has no roots."""
        assert get_command_roots("") == []

    def test_tokenizer_instance(self):
        """Test the class API matches the module functions."""
        tokenizer = CommandTokenizer()
        assert tokenizer.split("a && b") == ["a", "b"]
        assert tokenizer.root_of("'/opt/tool' --x") == "tool"
        assert tokenizer.roots("a; b") == ["a", "b"]


class TestStripShellWrapper:
    """Tests for removing sh -c style wrappers."""

    def test_bash_c_with_double_quotes(self):
        """Test bash -c "..." is unwrapped."""
        assert strip_shell_wrapper('bash -c "ls -la"') == "ls -la"

    def test_sh_c_with_single_quotes(self):
        """Test sh -c '...' is unwrapped."""
        assert strip_shell_wrapper("sh -c 'git status'") == "git status"

    def test_cmd_exe(self):
        """Test cmd.exe /c is unwrapped."""
        assert strip_shell_wrapper("cmd.exe /c dir") == "dir"

    def test_no_wrapper(self):
        """Test commands without a wrapper are only trimmed."""
        assert strip_shell_wrapper("  ls -la  ") == "ls -la"

    def test_mismatched_quotes_kept(self):
        """Test quotes are only removed when they match."""
        assert strip_shell_wrapper("""bash -c "ls'""") == """"ls'"""


class TestCanonicalForm:
    """Tests for reducing the executable of a sub-command to its root."""

    @pytest.mark.parametrize(
        "command,expected",
        [
            ("/bin/rm -rf /", "rm -rf /"),
            ("'rm' -rf /", "rm -rf /"),
            ('"/usr/bin/git"   status', "git status"),
            (r"C:\Windows\System32\cmd.exe /c dir", "cmd.exe /c dir"),
            ("git status", "git status"),
            ("  npm   test  ", "npm test"),
        ],
    )
    def test_canonical_form(self, command, expected):
        """Test quoting and directories are dropped from the executable only."""
        assert canonical_command(command) == expected

    def test_arguments_untouched(self):
        """Test paths in arguments are not rewritten."""
        assert canonical_command("cat /etc/hosts") == "cat /etc/hosts"

    def test_blank(self):
        """Test a blank command stays empty."""
        assert CommandTokenizer().canonical_form("   ") == ""
