"""Command substitution and injection detection.

Runs on the raw, untokenized command string before anything else. A
positive result is an unconditional hard denial.

Two layers:
- Pattern pre-scan: a fixed battery of compiled patterns that cheaply
  rejects the common constructs and catches encoded bypass attempts
  (hex/octal/unicode escapes, base64 decode-and-run) that the character
  walk alone would miss.
- Stateful scan: the authoritative check. Walks the string tracking
  single quotes, double quotes and backticks the way a POSIX shell does,
  and flags any construct that would expand or execute a sub-command.
"""

import re

from agentic_guard.shell.tokenizer import CommandTokenizer


class SubstitutionDetector:
    """Detects shell constructs that would expand or run a sub-command.

    Follows bash quoting rules:
    - Single quotes: everything is literal.
    - Double quotes: ``$()``, backticks and ``$VAR`` are live;
      ``<()``/``>()`` are not.
    - Unquoted: all of the above plus process substitution.
    - ``$'...'`` decodes escapes at run time and is always flagged.
    """

    # Expansion constructs, matched against the command with single-quoted
    # literal spans blanked out
    EXPANSION_PATTERNS: list[tuple[str, re.Pattern[str]]] = [
        ("command substitution $()", re.compile(r"\$\([^)]*\)")),
        ("backtick substitution", re.compile(r"`[^`]*`")),
        ("parameter expansion ${}", re.compile(r"\$\{[^}]*\}")),
        ("variable expansion $VAR", re.compile(r"\$[A-Za-z_][A-Za-z0-9_]*")),
        ("arithmetic expansion $[]", re.compile(r"\$\[[^\]]*\]")),
        ("ANSI-C quoting $''", re.compile(r"\$'")),
        ("process substitution <()", re.compile(r"<\([^)]*\)")),
        ("process substitution >()", re.compile(r">\([^)]*\)")),
        ("IFS expansion", re.compile(r"\$\{IFS\}")),
        ("IFS expansion", re.compile(r"\$IFS")),
    ]

    # Invocations that run arbitrary strings or files, matched at the start
    # of every sub-command
    LEADING_PATTERNS: list[tuple[str, re.Pattern[str]]] = [
        ("eval invocation", re.compile(r"^\s*eval\s+")),
        ("exec invocation", re.compile(r"^\s*exec\s+")),
        ("source invocation", re.compile(r"^\s*source\s+")),
        ("dot invocation", re.compile(r"^\s*\.\s+")),
    ]

    # Encoded/obfuscated content
    HEX_ESCAPE_PATTERN = re.compile(r"\\x[0-9a-fA-F]{2}")
    OCTAL_ESCAPE_PATTERN = re.compile(r"\\[0-7]{3}")
    UNICODE_ESCAPE_PATTERN = re.compile(r"\\u[0-9a-fA-F]{4}")
    UNICODE_LONG_ESCAPE_PATTERN = re.compile(r"\\U[0-9a-fA-F]{8}")
    BASE64_RUN_PATTERN = re.compile(r"[A-Za-z0-9+/]{20,}={0,2}")
    BASE64_MARKER = "base64"

    VARIABLE_START_PATTERN = re.compile(r"[A-Za-z_\[{]")

    _tokenizer = CommandTokenizer()

    def detect(self, command: str) -> bool:
        """Check whether a shell would expand or execute anything in a command.

        Args:
            command: Raw command string.

        Returns:
            True if the command is unsafe.
        """
        if self.prescan(command):
            return True
        return self.scan(command) is not None

    def prescan(self, command: str) -> str | None:
        """Run the pattern battery.

        Returns:
            Name of the first matching pattern, or None.
        """
        masked = self.mask_single_quoted(command)
        for name, pattern in self.EXPANSION_PATTERNS:
            if pattern.search(masked):
                return name

        leading = self.leading_invocation(command)
        if leading:
            return leading

        return self.encoded_finding(command)

    def leading_invocation(self, command: str) -> str | None:
        """Find eval/exec/source/dot at the start of any sub-command."""
        for sub_command in self._tokenizer.split(command):
            for name, pattern in self.LEADING_PATTERNS:
                if pattern.search(sub_command):
                    return name
        return None

    def scan(self, command: str) -> str | None:
        """Walk the command tracking quote state.

        Returns:
            Name of the first live construct found, or None.
        """
        in_single_quotes = False
        in_double_quotes = False
        in_backticks = False
        i = 0
        length = len(command)

        while i < length:
            char = command[i]
            next_char = command[i + 1] if i + 1 < length else ""

            # Escapes only work outside single quotes
            if char == "\\" and not in_single_quotes:
                i += 2
                continue

            opening_backtick = False
            if char == "'" and not in_double_quotes and not in_backticks:
                in_single_quotes = not in_single_quotes
            elif char == '"' and not in_single_quotes and not in_backticks:
                in_double_quotes = not in_double_quotes
            elif char == "`" and not in_single_quotes:
                # Backticks are live inside double quotes too
                opening_backtick = not in_backticks
                in_backticks = not in_backticks

            if not in_single_quotes:
                if char == "$" and next_char == "(":
                    return "command substitution $()"
                if char == "$" and next_char == "'" and not in_double_quotes:
                    return "ANSI-C quoting $''"
                if (
                    char in "<>"
                    and next_char == "("
                    and not in_double_quotes
                    and not in_backticks
                ):
                    return f"process substitution {char}()"
                if opening_backtick:
                    return "backtick substitution"
                if char == "$" and next_char and self.VARIABLE_START_PATTERN.match(next_char):
                    return "variable expansion"

            i += 1

        return None

    def contains_encoded_commands(self, command: str) -> bool:
        """Check for escape sequences or base64 payloads that decode at run time."""
        return self.encoded_finding(command) is not None

    def encoded_finding(self, command: str) -> str | None:
        if self.HEX_ESCAPE_PATTERN.search(command):
            return "hex escape"
        if self.OCTAL_ESCAPE_PATTERN.search(command):
            return "octal escape"
        if self.UNICODE_ESCAPE_PATTERN.search(command):
            return "unicode escape"
        if self.UNICODE_LONG_ESCAPE_PATTERN.search(command):
            return "unicode escape"
        if self.BASE64_MARKER in command and self.BASE64_RUN_PATTERN.search(command):
            return "base64 payload"
        return None

    def explain(self, command: str) -> list[str]:
        """List the findings that make a command unsafe.

        Used for security event details; ``detect`` is the verdict.
        """
        findings = []
        masked = self.mask_single_quoted(command)
        for name, pattern in self.EXPANSION_PATTERNS:
            if pattern.search(masked) and name not in findings:
                findings.append(name)
        leading = self.leading_invocation(command)
        if leading:
            findings.append(leading)
        encoded = self.encoded_finding(command)
        if encoded:
            findings.append(encoded)
        live = self.scan(command)
        if live and live not in findings:
            findings.append(live)
        return findings

    def mask_single_quoted(self, command: str) -> str:
        """Blank the contents of literal single-quoted spans.

        Only terminated spans opened outside double quotes and backticks
        are masked. ANSI-C ``$'...'`` spans decode escapes, so they are
        kept, as is everything after an unterminated quote.
        """
        out: list[str] = []
        in_double_quotes = False
        in_backticks = False
        i = 0
        length = len(command)

        while i < length:
            char = command[i]

            if char == "\\":
                out.append(command[i : i + 2])
                i += 2
                continue

            if char == '"' and not in_backticks:
                in_double_quotes = not in_double_quotes
            elif char == "`":
                in_backticks = not in_backticks
            elif (
                char == "'"
                and not in_double_quotes
                and not in_backticks
                and not (i > 0 and command[i - 1] == "$")
            ):
                end = command.find("'", i + 1)
                if end != -1:
                    out.append("'" + " " * (end - i - 1) + "'")
                    i = end + 1
                    continue
            elif char == "'" and not in_double_quotes and not in_backticks:
                # Keep ANSI-C content, honouring \' inside it
                j = i + 1
                while j < length and command[j] != "'":
                    j += 2 if command[j] == "\\" else 1
                out.append(command[i : j + 1])
                i = j + 1
                continue

            out.append(char)
            i += 1

        return "".join(out)


_detector = SubstitutionDetector()


def detect_command_substitution(command: str) -> bool:
    """Check whether a command contains substitution, expansion or encoded payloads.

    Args:
        command: Raw command string.

    Returns:
        True if bash would expand or execute something in the command.
    """
    return _detector.detect(command)


def contains_encoded_commands(command: str) -> bool:
    """Check for hex/octal/unicode escapes or base64 decode patterns."""
    return _detector.contains_encoded_commands(command)
