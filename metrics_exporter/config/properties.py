"""
Reader and writer for flat ``key=value`` property files.

Follows the java.util.Properties line format the exporter's config file has always used:

- ``#`` or ``!`` as first non-blank character marks a comment line.
- Key ends at the first unescaped ``=``, ``:`` or whitespace; leading whitespace of the value is dropped.
- A line ending in an odd number of backslashes continues on the next line.
- Escapes: ``\\t \\n \\r \\f \\uXXXX``; any other escaped character stands for itself.
"""

import os
import tempfile
from pathlib import Path
from typing import Iterator, Mapping

from metrics_exporter.errors import PropertiesFormatError

_WHITESPACE = " \t\f"
_SEPARATORS = "=:"
_ESCAPES = {"t": "\t", "n": "\n", "r": "\r", "f": "\f"}


def _logical_lines(text: str) -> Iterator[str]:
    """Join continuation lines; skip blanks and comments."""
    pending: str | None = None
    for natural in text.splitlines():
        line = natural.lstrip(_WHITESPACE)
        if pending is None:
            if not line or line[0] in "#!":
                continue
        trailing = len(line) - len(line.rstrip("\\"))
        if trailing % 2 == 1:
            pending = (pending or "") + line[:-1]
            continue
        yield (pending or "") + line
        pending = None
    if pending is not None:
        yield pending


def _unescape(raw: str, lineno: int) -> str:
    out: list[str] = []
    i = 0
    while i < len(raw):
        ch = raw[i]
        if ch != "\\" or i + 1 >= len(raw):
            out.append(ch)
            i += 1
            continue
        nxt = raw[i + 1]
        if nxt == "u":
            digits = raw[i + 2 : i + 6]
            if len(digits) != 4 or any(c not in "0123456789abcdefABCDEF" for c in digits):
                raise PropertiesFormatError(f"malformed \\uXXXX escape in logical line {lineno}")
            out.append(chr(int(digits, 16)))
            i += 6
            continue
        out.append(_ESCAPES.get(nxt, nxt))
        i += 2
    return "".join(out)


def _split_key_value(line: str) -> tuple[str, str]:
    i = 0
    while i < len(line):
        ch = line[i]
        if ch == "\\":
            i += 2
            continue
        if ch in _SEPARATORS or ch in _WHITESPACE:
            break
        i += 1
    key = line[:i]
    rest = line[i:].lstrip(_WHITESPACE)
    if rest[:1] in ("=", ":"):
        rest = rest[1:].lstrip(_WHITESPACE)
    return key, rest


def parse_properties(text: str) -> dict[str, str]:
    """Parse property-file text into a dict. Later duplicates win."""
    result: dict[str, str] = {}
    for lineno, line in enumerate(_logical_lines(text), start=1):
        key, value = _split_key_value(line)
        result[_unescape(key, lineno)] = _unescape(value, lineno)
    return result


def load_properties(path: Path) -> dict[str, str]:
    """
    Read and parse a property file.

    Raises:
        OSError: File missing or unreadable.
        PropertiesFormatError: File is not valid UTF-8 or holds a malformed escape.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise PropertiesFormatError(f"{path} is not valid UTF-8") from e
    return parse_properties(text)


def _escape(text: str, is_key: bool) -> str:
    out: list[str] = []
    for idx, ch in enumerate(text):
        if ch == "\\":
            out.append("\\\\")
        elif ch in "\t\n\r\f":
            out.append("\\" + {"\t": "t", "\n": "n", "\r": "r", "\f": "f"}[ch])
        elif ch in "=:#!" or (ch == " " and (is_key or idx == 0)):
            out.append("\\" + ch)
        else:
            out.append(ch)
    return "".join(out)


def dump_properties(values: Mapping[str, str], comment: str | None = None) -> str:
    """Render a mapping in property-file format (round-trips through parse_properties)."""
    lines = []
    if comment:
        lines.extend(f"# {c}" for c in comment.splitlines())
    for key, value in values.items():
        lines.append(f"{_escape(key, True)}={_escape(value, False)}")
    return "\n".join(lines) + "\n"


def write_properties(path: Path, values: Mapping[str, str], comment: str | None = None) -> None:
    """
    Write a property file atomically.

    The content goes to a temporary file in the same directory, which then replaces path,
    so a concurrent reader sees either the old file or the new one.
    """
    path = Path(path)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as f:
            f.write(dump_properties(values, comment))
        os.replace(tmp_name, path)
    except Exception:
        Path(tmp_name).unlink(missing_ok=True)
        raise
