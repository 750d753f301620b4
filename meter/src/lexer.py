"""
Tokenizer for DSMR-style P1 telegrams.

A telegram is a sequence of newline-terminated lines::

    /ISK5\\2M550T-1012
    1-0:1.8.1(001234.567*kWh)
    0-0:96.14.0(0002)
    !A1B2

The lexer turns that text into three token kinds: ``COMMENT`` for the
identification line, ``CODE`` for OBIS register identifiers and ``VALUE``
for parenthesised payloads. Whitespace and footer lines starting with ``!``
produce no tokens. Iteration is lazy and restartable: every ``iter()`` on a
:class:`TelegramLexer` scans the input again from the start.

CHANGELOG:
- 2026-10-17: Initial creation

TODO:
- None
"""

from __future__ import annotations

import re
from collections.abc import Iterator
from dataclasses import dataclass
from enum import Enum

from meter.src.errors import UnexpectedTokenError


class TokenKind(Enum):
    """Syntactic category of a token."""

    COMMENT = "comment"
    CODE = "code"
    VALUE = "value"


@dataclass(frozen=True, slots=True)
class Token:
    """A single lexed token.

    Attributes:
        kind: Token category.
        text: Payload: comment text without ``/``, the OBIS code, or the
            value without its parentheses.
        offset: Character offset of the token in the telegram.
    """

    kind: TokenKind
    text: str
    offset: int


# Order matters: skipped input is tried before the token patterns.
_SKIP_RE = re.compile(r"[ \t\n\f\r]+|![^\n]*")
_COMMENT_RE = re.compile(r"/[^\n]*")
_CODE_RE = re.compile(r"[0-9]+-[0-9]+:[0-9]+(?:\.[0-9]+)*")
_VALUE_RE = re.compile(r"\(([^)]*)\)")


class TelegramLexer:
    """Restartable token iterator over one telegram.

    Args:
        raw: Telegram as ASCII ``bytes`` or ``str``.

    Raises:
        UnexpectedTokenError: During iteration, at the first character that
            starts no token, or at construction for non-ASCII bytes.
    """

    def __init__(self, raw: bytes | str) -> None:
        if isinstance(raw, bytes):
            try:
                raw = raw.decode("ascii")
            except UnicodeDecodeError as exc:
                raise UnexpectedTokenError(
                    f"non-ASCII byte 0x{raw[exc.start]:02x}", offset=exc.start
                ) from exc
        self._text = raw

    def __iter__(self) -> Iterator[Token]:
        return self._scan()

    def tokens(self) -> list[Token]:
        """Lex the whole telegram eagerly."""
        return list(self)

    def _scan(self) -> Iterator[Token]:
        text = self._text
        pos = 0
        end = len(text)

        while pos < end:
            skipped = _SKIP_RE.match(text, pos)
            if skipped is not None:
                pos = skipped.end()
                continue

            match = _COMMENT_RE.match(text, pos)
            if match is not None:
                yield Token(TokenKind.COMMENT, match.group().strip()[1:], pos)
                pos = match.end()
                continue

            match = _CODE_RE.match(text, pos)
            if match is not None:
                yield Token(TokenKind.CODE, match.group(), pos)
                pos = match.end()
                continue

            match = _VALUE_RE.match(text, pos)
            if match is not None:
                yield Token(TokenKind.VALUE, match.group(1), pos)
                pos = match.end()
                continue

            snippet = text[pos : pos + 16].split("\n", 1)[0]
            raise UnexpectedTokenError(f"unexpected input {snippet!r}", offset=pos)
