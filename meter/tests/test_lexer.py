"""
Unit tests for the P1 telegram lexer.

Tests verify:
- Comment, code and value tokens with their payloads and offsets
- Whitespace and ``!`` footer lines produce no tokens
- Iteration is lazy and restartable
- Unexpected and non-ASCII input raise UnexpectedTokenError with an offset

CHANGELOG:
- 2026-10-17: Initial creation

TODO:
- None
"""

from __future__ import annotations

import pytest

from meter.src.errors import LexError, UnexpectedTokenError
from meter.src.lexer import TelegramLexer, Token, TokenKind


def _kinds_and_texts(raw: bytes | str) -> list[tuple[TokenKind, str]]:
    return [(tok.kind, tok.text) for tok in TelegramLexer(raw)]


class TestTokens:
    """Token categories and payloads."""

    def test_footer_and_whitespace_skipped(self) -> None:
        assert _kinds_and_texts("/header\n1-0:2.8.1(001.234*kWh)\n!CRC\n") == [
            (TokenKind.COMMENT, "header"),
            (TokenKind.CODE, "1-0:2.8.1"),
            (TokenKind.VALUE, "001.234*kWh"),
        ]

    def test_comment_trimmed_with_crlf(self) -> None:
        tokens = TelegramLexer(b"/ISK5\\2M550T-1012  \r\n").tokens()
        assert tokens == [Token(TokenKind.COMMENT, "ISK5\\2M550T-1012", 0)]

    def test_offsets(self) -> None:
        tokens = TelegramLexer("/h\n0-0:96.14.0(0002)").tokens()
        assert [tok.offset for tok in tokens] == [0, 3, 14]

    def test_multi_digit_groups(self) -> None:
        assert _kinds_and_texts("0-0:96.14.0") == [(TokenKind.CODE, "0-0:96.14.0")]

    def test_value_interior_verbatim(self) -> None:
        assert _kinds_and_texts("(0-0:96.7.19)()") == [
            (TokenKind.VALUE, "0-0:96.7.19"),
            (TokenKind.VALUE, ""),
        ]

    def test_multiple_values_after_code(self) -> None:
        kinds = [kind for kind, _ in _kinds_and_texts("0-1:24.2.1(231017115500S)(01234.567*m3)")]
        assert kinds == [TokenKind.CODE, TokenKind.VALUE, TokenKind.VALUE]

    def test_empty_input(self) -> None:
        assert TelegramLexer(b"").tokens() == []

    def test_only_footer(self) -> None:
        assert TelegramLexer("!E3B2\r\n").tokens() == []

    def test_sample_telegram(self, sample_telegram: bytes) -> None:
        tokens = TelegramLexer(sample_telegram).tokens()
        assert tokens[0].kind is TokenKind.COMMENT
        codes = [tok.text for tok in tokens if tok.kind is TokenKind.CODE]
        assert "1-0:1.8.1" in codes
        assert "0-0:96.14.0" in codes
        assert len(codes) == 15


class TestIteration:
    """Laziness and restartability."""

    def test_restartable(self) -> None:
        lexer = TelegramLexer("/h\n1-0:1.8.1(1*kWh)\n")
        assert list(lexer) == list(lexer)

    def test_lazy_tokens_before_error(self) -> None:
        tokens = iter(TelegramLexer("/h\n1-0:1.8.1(1*kWh)\n#bad"))
        assert next(tokens).kind is TokenKind.COMMENT
        assert next(tokens).kind is TokenKind.CODE
        assert next(tokens).kind is TokenKind.VALUE
        with pytest.raises(UnexpectedTokenError):
            next(tokens)


class TestErrors:
    """Input that starts no token."""

    def test_unexpected_input_offset(self) -> None:
        with pytest.raises(UnexpectedTokenError) as exc_info:
            TelegramLexer("/h\n@@").tokens()
        assert exc_info.value.offset == 3

    def test_unterminated_value(self) -> None:
        with pytest.raises(UnexpectedTokenError) as exc_info:
            TelegramLexer("1-0:1.8.1(123").tokens()
        assert exc_info.value.offset == 9

    def test_non_ascii_bytes(self) -> None:
        with pytest.raises(UnexpectedTokenError) as exc_info:
            TelegramLexer(b"/h\n\xff")
        assert exc_info.value.offset == 3

    def test_is_lex_error(self) -> None:
        with pytest.raises(LexError):
            TelegramLexer("?").tokens()
