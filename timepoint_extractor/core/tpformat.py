"""Reader and writer for ``.tp`` timepoint metadata files.

A file is a return statement followed by a table of records::

    return {
      { time = 10000000, label = "Point0001", formatted = "00:00:10.000", remark = "" },
    }

The syntax is a subset of Lua table constructors, which keeps files written
by older versions of the extractor loadable. Content is tokenized and parsed
here; it is never evaluated.
"""

from __future__ import annotations

import re
from typing import Any, Iterable

from ..exceptions import MetadataFormatError
from .timepoints import TimepointStore

__all__ = ["dumps", "loads", "quote"]

_STRING_FIELDS = ("label", "formatted", "remark")

_ESCAPES_OUT = {"\\": "\\\\", '"': '\\"', "\n": "\\n", "\r": "\\r"}
_ESCAPES_IN = {
    "n": b"\n",
    "t": b"\t",
    "r": b"\r",
    "a": b"\a",
    "b": b"\b",
    "f": b"\f",
    "v": b"\v",
    "\\": b"\\",
    '"': b'"',
    "'": b"'",
    "\n": b"\n",
}


def quote(text: str) -> str:
    """Quote a string the way Lua's ``%q`` does."""
    out = ['"']
    for i, ch in enumerate(text):
        if ch in _ESCAPES_OUT:
            out.append(_ESCAPES_OUT[ch])
        elif ord(ch) < 32 or ord(ch) == 127:
            # pad to 3 digits when a digit follows so it is not absorbed
            nxt = text[i + 1 : i + 2]
            out.append(f"\\{ord(ch):03d}" if nxt.isdigit() else f"\\{ord(ch)}")
        else:
            out.append(ch)
    out.append('"')
    return "".join(out)


def dumps(store: TimepointStore) -> str:
    lines = ["return {"]
    for tp in store:
        lines.append(
            "  { time = %d, label = %s, formatted = %s, remark = %s },"
            % (tp.time, quote(tp.label), quote(tp.formatted), quote(tp.remark or ""))
        )
    lines.append("}")
    return "\n".join(lines) + "\n"


_TOKEN = re.compile(
    r"""
    (?P<ws>\s+)
  | (?P<comment>--[^\n]*)
  | (?P<number>-?\d+(?:\.\d*)?(?:[eE][+-]?\d+)?)
  | (?P<name>[A-Za-z_][A-Za-z0-9_]*)
  | (?P<quote>["'])
  | (?P<punct>[{}=,;])
    """,
    re.VERBOSE,
)
_DEC_ESCAPE = re.compile(r"[0-9]{1,3}")
_HEX_ESCAPE = re.compile(r"[0-9A-Fa-f]{2}")


def _read_string(text: str, pos: int, delim: str) -> tuple[str, int]:
    buf = bytearray()
    while pos < len(text):
        ch = text[pos]
        if ch == delim:
            return buf.decode("utf-8", errors="replace"), pos + 1
        if ch == "\n":
            raise MetadataFormatError("unfinished string")
        if ch != "\\":
            buf += ch.encode("utf-8")
            pos += 1
            continue
        pos += 1
        if pos >= len(text):
            break
        esc = text[pos]
        if esc in _ESCAPES_IN:
            buf += _ESCAPES_IN[esc]
            pos += 1
        elif "0" <= esc <= "9":
            m = _DEC_ESCAPE.match(text, pos)
            value = int(m.group(0))
            if value > 255:
                raise MetadataFormatError(f"decimal escape too large: {value}")
            buf.append(value)
            pos += len(m.group(0))
        elif esc == "x":
            m = _HEX_ESCAPE.match(text, pos + 1)
            if not m:
                raise MetadataFormatError("invalid hex escape")
            buf.append(int(m.group(0), 16))
            pos += 3
        elif esc == "z":
            pos += 1
            while pos < len(text) and text[pos].isspace():
                pos += 1
        else:
            raise MetadataFormatError(f"invalid escape sequence '\\{esc}'")
    raise MetadataFormatError("unfinished string")


def _tokenize(text: str) -> Iterable[tuple[str, Any]]:
    pos = 0
    while pos < len(text):
        m = _TOKEN.match(text, pos)
        if not m:
            raise MetadataFormatError(f"unexpected character {text[pos]!r} at offset {pos}")
        kind = m.lastgroup
        if kind == "quote":
            value, pos = _read_string(text, m.end(), m.group("quote"))
            yield "string", value
            continue
        pos = m.end()
        if kind in ("ws", "comment"):
            continue
        yield kind, m.group(kind)
    yield "eof", None


class _Parser:
    def __init__(self, text: str):
        self._tokens = list(_tokenize(text))
        self._i = 0

    def _peek(self) -> tuple[str, Any]:
        return self._tokens[self._i]

    def _next(self) -> tuple[str, Any]:
        tok = self._tokens[self._i]
        self._i += 1
        return tok

    def _expect(self, kind: str, value: Any = None) -> Any:
        tok_kind, tok_value = self._next()
        if tok_kind != kind or (value is not None and tok_value != value):
            raise MetadataFormatError(
                f"expected {value or kind}, found {tok_value or tok_kind}"
            )
        return tok_value

    def _skip_separator(self) -> None:
        if self._peek() in (("punct", ","), ("punct", ";")):
            self._next()

    def parse(self) -> list[dict[str, Any]]:
        self._expect("name", "return")
        self._expect("punct", "{")
        records = []
        while self._peek() != ("punct", "}"):
            records.append(self._record())
            self._skip_separator()
        self._expect("punct", "}")
        self._expect("eof")
        return records

    def _record(self) -> dict[str, Any]:
        self._expect("punct", "{")
        record: dict[str, Any] = {}
        while self._peek() != ("punct", "}"):
            key = self._expect("name")
            self._expect("punct", "=")
            kind, value = self._next()
            if kind == "number":
                record[key] = _number(value)
            elif kind == "string":
                record[key] = value
            else:
                raise MetadataFormatError(f"unsupported value for field '{key}'")
            self._skip_separator()
        self._expect("punct", "}")
        return _check_record(record)


def _number(literal: str) -> int | float:
    try:
        return int(literal)
    except ValueError:
        value = float(literal)
        return int(value) if value.is_integer() else value


def _check_record(record: dict[str, Any]) -> dict[str, Any]:
    time = record.get("time")
    if not isinstance(time, int) or time < 0:
        raise MetadataFormatError(f"record has no valid time: {record!r}")
    for name in _STRING_FIELDS:
        if name in record and not isinstance(record[name], str):
            raise MetadataFormatError(f"field '{name}' must be a string")
    return record


def loads(text: str) -> TimepointStore:
    """Parse metadata text; raises MetadataFormatError on any deviation."""
    return TimepointStore.from_records(_Parser(text).parse())
