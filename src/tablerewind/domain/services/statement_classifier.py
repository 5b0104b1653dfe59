"""Statement classifier service.

Decides, from raw SQL text, whether a statement inserts rows and which
table it targets. This is a lexical scan over the leading tokens, not a
SQL parser: anything that does not look like an insertion is reported as
"not an insertion" and nothing here ever raises.

Recognized shapes (keywords are case-insensitive):

    INSERT [IGNORE|LOW_PRIORITY|DELAYED|HIGH_PRIORITY] [INTO] target ...
    INSERT OR {ROLLBACK|ABORT|REPLACE|FAIL|IGNORE} [INTO] target ...

where target is a dot-separated chain of bare, "double quoted",
`backticked` or [bracketed] identifiers.

Inside 'string' literals a doubled quote is the only escape, as in standard
SQL, SQLite and PostgreSQL. MySQL also escapes with a backslash; text written
that way is only split correctly with backslash_escapes enabled.
"""

import re
from typing import Any, Optional

from tablerewind.domain.entities.insert_target import InsertTarget

_WORD = re.compile(r"[A-Za-z_][A-Za-z0-9_$]*")
_BARE_IDENTIFIER = re.compile(r"[^\s.(),;'\"`\[\]]+")
_STATEMENT_BOUNDARY = re.compile(r"[;'\"`\[]|--|/\*")

_MODIFIERS = frozenset({"IGNORE", "LOW_PRIORITY", "DELAYED", "HIGH_PRIORITY"})
_CONFLICT_ACTIONS = frozenset({"ROLLBACK", "ABORT", "REPLACE", "FAIL", "IGNORE"})
_QUOTE_PAIRS = {'"': '"', "`": "`", "[": "]"}


def statement_text(statement: Any) -> Optional[str]:
    """Extract SQL text from whatever a driver entry point received.

    Accepts str, bytes (decoded as UTF-8), and objects carrying a string
    ``text`` attribute such as SQLAlchemy's TextClause.

    Returns:
        The SQL text, or None when the statement carries no text.
    """
    if isinstance(statement, str):
        return statement
    if isinstance(statement, (bytes, bytearray)):
        return bytes(statement).decode("utf-8", "replace")
    text = getattr(statement, "text", None)
    return text if isinstance(text, str) else None


def _skip_trivia(text: str, pos: int) -> int:
    """Skip whitespace, -- line comments and /* block */ comments."""
    n = len(text)
    while pos < n:
        if text[pos].isspace():
            pos += 1
        elif text.startswith("--", pos):
            end = text.find("\n", pos)
            pos = n if end == -1 else end + 1
        elif text.startswith("/*", pos):
            end = text.find("*/", pos + 2)
            pos = n if end == -1 else end + 2
        else:
            break
    return pos


def _skip_quoted(text: str, pos: int, close: str) -> int:
    """Return the index just past the quoted run opening at pos.

    A doubled closing character is an escaped literal character.
    Unterminated runs extend to the end of the text.
    """
    search = pos + 1
    while True:
        end = text.find(close, search)
        if end == -1:
            return len(text)
        if text.startswith(close, end + 1):
            search = end + 2
            continue
        return end + 1


def _skip_escaped(text: str, pos: int, close: str) -> int:
    """Like _skip_quoted(), but a backslash also escapes the next character."""
    n = len(text)
    i = pos + 1
    while i < n:
        char = text[i]
        if char == "\\":
            i += 2
        elif char != close:
            i += 1
        elif text.startswith(close, i + 1):
            i += 2
        else:
            return i + 1
    return n


def _read_identifier(text: str, pos: int) -> tuple[Optional[str], int]:
    """Read one identifier part starting at pos."""
    close = _QUOTE_PAIRS.get(text[pos:pos + 1])
    if close is not None:
        end = _skip_quoted(text, pos, close)
        if end - pos < 2 or not text.endswith(close, 0, end):
            return None, end
        name = text[pos + 1:end - 1].replace(close + close, close)
        return (name or None), end

    match = _BARE_IDENTIFIER.match(text, pos)
    if match is None:
        return None, pos
    return match.group(), match.end()


def _statement_end(text: str, pos: int, backslash_escapes: bool = False) -> int:
    """Index of the ';' ending the statement that starts at pos (or len(text))."""
    n = len(text)
    while pos < n:
        match = _STATEMENT_BOUNDARY.search(text, pos)
        if match is None:
            return n
        token = match.group()
        if token == ";":
            return match.start()
        if token == "--":
            end = text.find("\n", match.end())
            pos = n if end == -1 else end + 1
        elif token == "/*":
            end = text.find("*/", match.end())
            pos = n if end == -1 else end + 2
        elif token == "[":
            pos = _skip_quoted(text, match.start(), "]")
        elif backslash_escapes and token != "`":
            pos = _skip_escaped(text, match.start(), token)
        else:
            pos = _skip_quoted(text, match.start(), token)
    return n


class StatementClassifier:
    """Classify SQL statements as row insertions.

    Example:
        >>> StatementClassifier().classify('INSERT INTO "users" (id) VALUES (1)')
        InsertTarget(table='users', schema=None)
        >>> StatementClassifier().classify("SELECT * FROM users") is None
        True
    """

    def __init__(self, split_statements: bool = True, backslash_escapes: bool = False) -> None:
        """Initialize the classifier.

        Args:
            split_statements: Classify every statement of ';'-separated text.
                When False only the leading statement is examined.
            backslash_escapes: Backslash escapes the next character inside
                '...' and "..." literals when splitting statements.
        """
        self.split_statements = split_statements
        self.backslash_escapes = backslash_escapes

    def classify(self, statement: Any) -> Optional[InsertTarget]:
        """Classify the leading statement.

        Args:
            statement: SQL text (or a text carrier, see statement_text()).

        Returns:
            The insertion target, or None if the statement is not an insertion.
        """
        text = statement_text(statement)
        if text is None:
            return None
        return self._classify_at(text, 0)

    def classify_all(self, statement: Any) -> list[InsertTarget]:
        """Classify every statement in possibly multi-statement text.

        Returns:
            Insertion targets in statement order (may contain repeats).
        """
        text = statement_text(statement)
        if text is None:
            return []

        if not self.split_statements or ";" not in text:
            target = self._classify_at(text, 0)
            return [target] if target is not None else []

        targets = []
        pos = 0
        n = len(text)
        while pos < n:
            target = self._classify_at(text, pos)
            if target is not None:
                targets.append(target)
            pos = _statement_end(text, pos, self.backslash_escapes) + 1
        return targets

    def inserted_tables(self, statement: Any, qualified: bool = False) -> list[str]:
        """Names of the tables the statement inserts into, without repeats.

        Args:
            statement: SQL text.
            qualified: Return schema-qualified names when present.
        """
        names: list[str] = []
        for target in self.classify_all(statement):
            name = target.qualified_name if qualified else target.table
            if name not in names:
                names.append(name)
        return names

    def _classify_at(self, text: str, pos: int) -> Optional[InsertTarget]:
        pos = _skip_trivia(text, pos)
        match = _WORD.match(text, pos)
        if match is None or match.group().upper() != "INSERT":
            return None
        pos = _skip_trivia(text, match.end())

        # Modifiers and INTO
        while True:
            match = _WORD.match(text, pos)
            if match is None:
                break
            word = match.group().upper()
            if word in _MODIFIERS:
                pos = _skip_trivia(text, match.end())
            elif word == "OR":
                action = _WORD.match(text, _skip_trivia(text, match.end()))
                if action is None or action.group().upper() not in _CONFLICT_ACTIONS:
                    return None
                pos = _skip_trivia(text, action.end())
            elif word == "INTO":
                pos = _skip_trivia(text, match.end())
                break
            else:
                break

        if pos >= len(text):
            return None

        parts: list[str] = []
        name, pos = _read_identifier(text, pos)
        if name is None:
            return None
        parts.append(name)

        while True:
            dot = _skip_trivia(text, pos)
            if not text.startswith(".", dot):
                break
            start = _skip_trivia(text, dot + 1)
            if start >= len(text):
                break
            name, pos = _read_identifier(text, start)
            if name is None:
                break
            parts.append(name)

        return InsertTarget(table=parts[-1], schema=parts[-2] if len(parts) > 1 else None)


default_classifier = StatementClassifier()


def classify_insert(statement: Any) -> Optional[InsertTarget]:
    """Classify the leading statement with the default classifier."""
    return default_classifier.classify(statement)
