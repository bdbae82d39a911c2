"""Quote-aware command tokenizer and root extractor.

Splits a raw command line into the individual commands joined by ``;``,
``&&``, ``||``, ``&``, ``|`` or an unquoted line break, and extracts the
executable name of each one, so that allow/block rules keyed on bare
command names match however the executable was quoted or path-qualified.
"""

import re


class CommandTokenizer:
    """Splits shell command lines and extracts command roots.

    Quoting is tracked but never stripped from the sub-commands; only the
    top-level separators are removed. The tokenizer never raises: an
    unterminated quote simply leaves the rest of the line quoted, so
    separators inside it are not treated as separators.
    """

    TWO_CHAR_SEPARATORS = ("&&", "||")
    # An unquoted newline ends a command just like ;
    ONE_CHAR_SEPARATORS = (";", "&", "|", "\n", "\r")

    # First word: fully double-quoted, fully single-quoted, or bare
    ROOT_PATTERN = re.compile(r"""^"([^"]+)"|^'([^']+)'|^(\S+)""")
    PATH_SEPARATOR_PATTERN = re.compile(r"[\\/]")
    WHITESPACE_RUN = re.compile(r"\s+")

    # sh -c "...", bash -c '...', cmd.exe /c ...
    SHELL_WRAPPER_PATTERN = re.compile(r"^\s*(?:sh|bash|zsh|cmd\.exe)\s+(?:/c|-c)\s+")

    def split(self, command: str) -> list[str]:
        """Split a command line into its sub-commands.

        Args:
            command: Raw command string.

        Returns:
            Trimmed, non-empty sub-commands in order.
        """
        commands: list[str] = []
        current: list[str] = []
        in_single_quote = False
        in_double_quote = False
        i = 0
        length = len(command)

        while i < length:
            char = command[i]

            # Backslash escapes the next character except inside single quotes
            if char == "\\" and not in_single_quote and i + 1 < length:
                current.append(command[i : i + 2])
                i += 2
                continue

            if char == "'" and not in_double_quote:
                in_single_quote = not in_single_quote
            elif char == '"' and not in_single_quote:
                in_double_quote = not in_double_quote

            if in_single_quote or in_double_quote:
                current.append(char)
                i += 1
                continue

            if command[i : i + 2] in self.TWO_CHAR_SEPARATORS:
                commands.append("".join(current).strip())
                current = []
                i += 2
                continue

            if char in self.ONE_CHAR_SEPARATORS:
                commands.append("".join(current).strip())
                current = []
            else:
                current.append(char)
            i += 1

        commands.append("".join(current).strip())
        return [c for c in commands if c]

    def root_of(self, command: str) -> str | None:
        """Extract the executable name of a single sub-command.

        Examples:
            ``ls -la /tmp`` -> ``ls``
            ``"/usr/bin/git" status`` -> ``git``
            ``'git' status`` -> ``git``

        Args:
            command: A sub-command as returned by :meth:`split`.

        Returns:
            The final path component of the first word, or None.
        """
        trimmed = command.strip()
        if not trimmed:
            return None

        match = self.ROOT_PATTERN.match(trimmed)
        if not match:
            return None

        word = match.group(1) or match.group(2) or match.group(3)
        if not word:
            return None

        root = self.PATH_SEPARATOR_PATTERN.split(word)[-1]
        return root or None

    def canonical_form(self, command: str) -> str:
        """Rewrite a sub-command with its executable reduced to the bare root.

        ``"/usr/bin/git"  status`` becomes ``git status``, so that rules
        keyed on bare names match quoted or path-qualified executables.
        Whitespace runs are collapsed. A command without a root is only
        trimmed.
        """
        trimmed = command.strip()
        match = self.ROOT_PATTERN.match(trimmed)
        root = self.root_of(trimmed)
        if not match or not root:
            return self.WHITESPACE_RUN.sub(" ", trimmed)
        return self.WHITESPACE_RUN.sub(" ", root + trimmed[match.end() :])

    def roots(self, command: str) -> list[str]:
        """Extract the roots of every sub-command in a command line."""
        if not command:
            return []
        roots = []
        for sub_command in self.split(command):
            root = self.root_of(sub_command)
            if root:
                roots.append(root)
        return roots

    def strip_shell_wrapper(self, command: str) -> str:
        """Remove a leading ``sh -c`` style wrapper.

        ``bash -c "ls -la"`` becomes ``ls -la``. One pair of matching
        surrounding quotes is removed from the wrapped command.
        """
        match = self.SHELL_WRAPPER_PATTERN.match(command)
        if not match:
            return command.strip()

        inner = command[match.end() :].strip()
        if len(inner) >= 2 and inner[0] == inner[-1] and inner[0] in ("'", '"'):
            inner = inner[1:-1]
        return inner


_tokenizer = CommandTokenizer()


def split_commands(command: str) -> list[str]:
    """Split a command line into sub-commands. See :meth:`CommandTokenizer.split`."""
    return _tokenizer.split(command)


def get_command_root(command: str) -> str | None:
    """Extract the root of one sub-command. See :meth:`CommandTokenizer.root_of`."""
    return _tokenizer.root_of(command)


def canonical_command(command: str) -> str:
    """Reduce the executable of a sub-command to its bare root."""
    return _tokenizer.canonical_form(command)


def get_command_roots(command: str) -> list[str]:
    """Extract the roots of all sub-commands in a command line."""
    return _tokenizer.roots(command)


def strip_shell_wrapper(command: str) -> str:
    """Remove a leading ``sh -c``/``bash -c``/``cmd.exe /c`` wrapper."""
    return _tokenizer.strip_shell_wrapper(command)
