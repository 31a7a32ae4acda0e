# Copyright 2024 Google LLC
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#      http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Tokenizes feature source.

Works on the UTF-8 bytes of the source so token spans are byte offsets.
"""

from enum import Enum
import regex
from shaperfont.diagnostics import Diagnostics, SourceSpan
from typing import Iterator, NamedTuple


AUTOMATIC_CODE_MARKER = "Automatic Code"


class TokenKind(Enum):
    NAME = "name"
    NUMBER = "number"
    LANGUAGESYSTEM = "languagesystem"
    FEATURE = "feature"
    POS = "pos"
    LBRACE = "{"
    RBRACE = "}"
    SEMICOLON = ";"
    LPAREN = "("
    RPAREN = ")"
    EQUALS = "="
    COLON = ":"
    COMMA = ","
    AUTOMATIC_CODE = "# Automatic Code"
    EOF = "end of input"


class Token(NamedTuple):
    kind: TokenKind
    span: SourceSpan
    text: str


_KEYWORDS = {
    "languagesystem": TokenKind.LANGUAGESYSTEM,
    "feature": TokenKind.FEATURE,
    "pos": TokenKind.POS,
    "position": TokenKind.POS,
}

_PUNCTUATION = {
    "{": TokenKind.LBRACE,
    "}": TokenKind.RBRACE,
    ";": TokenKind.SEMICOLON,
    "(": TokenKind.LPAREN,
    ")": TokenKind.RPAREN,
    "=": TokenKind.EQUALS,
    ":": TokenKind.COLON,
    ",": TokenKind.COMMA,
}

_TOKEN_RE = regex.compile(
    rb"""
      (?P<whitespace>[ \t\r\n]+)
    | (?P<comment>\#[^\r\n]*)
    | (?P<number>-?[0-9]+(?:\.[0-9]+)?)
    | (?P<name>\\?[A-Za-z_.][A-Za-z0-9_.\-]*)
    | (?P<punctuation>[{};()=:,])
    """,
    regex.VERBOSE,
)


def _utf8_char_len(lead_byte: int) -> int:
    if lead_byte >= 0xF0:
        return 4
    if lead_byte >= 0xE0:
        return 3
    if lead_byte >= 0xC0:
        return 2
    return 1


class Lexer:
    """Yields the tokens of one source; always ends with a single EOF token.

    Comments are dropped, except for the exact "# Automatic Code" marker.
    """

    def __init__(self, source: bytes, diagnostics: Diagnostics):
        self.source = source
        self.diagnostics = diagnostics

    def __iter__(self) -> Iterator[Token]:
        data = self.source
        pos = 0
        while pos < len(data):
            match = _TOKEN_RE.match(data, pos)
            if match is None:
                yield self._unexpected(pos)
                return

            kind = match.lastgroup
            span = SourceSpan(*match.span())
            text = match.group().decode("utf-8")
            pos = match.end()

            if kind == "whitespace":
                continue
            if kind == "comment":
                if text[1:].strip() == AUTOMATIC_CODE_MARKER:
                    yield Token(TokenKind.AUTOMATIC_CODE, span, text)
                continue
            if kind == "number":
                yield Token(TokenKind.NUMBER, span, text)
            elif kind == "name":
                if text.startswith("\\"):
                    yield Token(TokenKind.NAME, span, text[1:])
                else:
                    yield Token(_KEYWORDS.get(text, TokenKind.NAME), span, text)
            else:
                yield Token(_PUNCTUATION[text], span, text)

        yield Token(TokenKind.EOF, SourceSpan(len(data), len(data)), "")

    def _unexpected(self, pos: int) -> Token:
        end = min(len(self.source), pos + _utf8_char_len(self.source[pos]))
        char = self.source[pos:end].decode("utf-8", errors="replace")
        self.diagnostics.error(
            f"Unexpected character '{char}'", SourceSpan(pos, end)
        )
        return Token(TokenKind.EOF, SourceSpan(pos, pos), "")


def tokenize(source: bytes, diagnostics: Diagnostics) -> Iterator[Token]:
    return iter(Lexer(source, diagnostics))
