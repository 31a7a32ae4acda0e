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

"""Recursive descent parser for the supported subset of feature syntax.

    file           := languagesystem* feature*
    languagesystem := "languagesystem" script language ";"
    feature        := "feature" tag "{" statement* "}" tag ";"
    statement      := pos | featureRef | "# Automatic Code"
    pos            := "pos" glyph glyph valueRecord ";"
    valueRecord    := number | "(" (location ":" number)+ ")"
    location       := axisTag "=" number ("," axisTag "=" number)*
    featureRef     := "feature" tag ";"

"# Automatic Code" outside a feature block is an ordinary comment. Parsing
stops at the first syntax error.
"""

from shaperfont.diagnostics import Diagnostics, SourceSpan
from shaperfont.feature_file import (
    AutomaticCodeMarker,
    AxisCoordinate,
    FeatureBlock,
    FeatureFile,
    FeatureReference,
    LanguageSystem,
    Name,
    Number,
    PositionPair,
    ScalarValue,
    Statement,
    ValueRecord,
    VariableEntry,
    VariableValue,
)
from shaperfont.lexer import Token, TokenKind, tokenize
from typing import Iterator, List, Optional


class _Abort(Exception):
    pass


def _join(first: SourceSpan, last: SourceSpan) -> SourceSpan:
    return SourceSpan(first.start, last.end)


class Parser:
    def __init__(self, tokens: Iterator[Token], diagnostics: Diagnostics):
        self._tokens = tokens
        self._diagnostics = diagnostics
        self._next: Token = next(self._tokens)
        # nothing consumed yet; a missing first token is reported at [0, 1]
        self._last = Token(TokenKind.EOF, SourceSpan(0, 0), "")

    def parse(self) -> Optional[FeatureFile]:
        """The parsed file, or None if a syntax error was reported."""
        try:
            return self._file()
        except _Abort:
            return None

    # Token plumbing

    def _peek(self) -> TokenKind:
        return self._next.kind

    def _advance(self) -> Token:
        token = self._next
        if token.kind is not TokenKind.EOF:
            self._next = next(self._tokens)
        self._last = token
        return token

    def _expected(self, what: str):
        # the lexer already explained why the input ended early
        if not self._diagnostics.has_errors():
            self._diagnostics.error(
                f"Expected '{what}'", SourceSpan.after(self._last.span)
            )
        raise _Abort()

    def _expect(self, kind: TokenKind, what: Optional[str] = None) -> Token:
        if self._peek() is not kind:
            self._expected(what or kind.value)
        return self._advance()

    def _name(self, what: str) -> Name:
        token = self._expect(TokenKind.NAME, what)
        return Name(token.text, token.span)

    def _number(self) -> Number:
        token = self._expect(TokenKind.NUMBER)
        return Number(token.text, token.span)

    # Grammar

    def _file(self) -> FeatureFile:
        language_systems: List[LanguageSystem] = []
        features: List[FeatureBlock] = []
        while True:
            kind = self._peek()
            if kind is TokenKind.AUTOMATIC_CODE:
                # only meaningful inside a feature block; elsewhere just a comment
                self._advance()
            elif kind is TokenKind.LANGUAGESYSTEM:
                if features:
                    self._expected(TokenKind.FEATURE.value)
                language_systems.append(self._language_system())
            elif kind is TokenKind.FEATURE:
                if not language_systems:
                    self._expected(TokenKind.LANGUAGESYSTEM.value)
                features.append(self._feature())
            elif kind is TokenKind.EOF:
                break
            elif language_systems:
                self._expected(TokenKind.FEATURE.value)
            else:
                self._expected(TokenKind.LANGUAGESYSTEM.value)
        # trailing EOF token
        self._advance()
        return FeatureFile(tuple(language_systems), tuple(features))

    def _language_system(self) -> LanguageSystem:
        keyword = self._expect(TokenKind.LANGUAGESYSTEM)
        script = self._name("script tag")
        language = self._name("language tag")
        semicolon = self._expect(TokenKind.SEMICOLON)
        return LanguageSystem(script, language, _join(keyword.span, semicolon.span))

    def _feature(self) -> FeatureBlock:
        keyword = self._expect(TokenKind.FEATURE)
        tag = self._name("feature tag")
        self._expect(TokenKind.LBRACE)

        statements: List[Statement] = []
        while self._peek() is not TokenKind.RBRACE:
            statements.append(self._statement())

        self._expect(TokenKind.RBRACE)
        end_tag = self._name("feature tag")
        semicolon = self._expect(TokenKind.SEMICOLON)
        return FeatureBlock(
            tag, tuple(statements), end_tag, _join(keyword.span, semicolon.span)
        )

    def _statement(self) -> Statement:
        kind = self._peek()
        if kind is TokenKind.POS:
            return self._position_pair()
        if kind is TokenKind.FEATURE:
            keyword = self._advance()
            tag = self._name("feature tag")
            semicolon = self._expect(TokenKind.SEMICOLON)
            return FeatureReference(tag, _join(keyword.span, semicolon.span))
        if kind is TokenKind.AUTOMATIC_CODE:
            return AutomaticCodeMarker(self._advance().span)
        self._expected(TokenKind.RBRACE.value)

    def _position_pair(self) -> PositionPair:
        keyword = self._expect(TokenKind.POS)
        left = self._name("glyph name")
        right = self._name("glyph name")
        value = self._value_record()
        semicolon = self._expect(TokenKind.SEMICOLON)
        return PositionPair(left, right, value, _join(keyword.span, semicolon.span))

    def _value_record(self) -> ValueRecord:
        if self._peek() is TokenKind.NUMBER:
            return ScalarValue(self._number())
        if self._peek() is not TokenKind.LPAREN:
            self._expected(TokenKind.NUMBER.value)

        lparen = self._advance()
        entries = [self._variable_entry()]
        while self._peek() is not TokenKind.RPAREN:
            entries.append(self._variable_entry())
        rparen = self._advance()
        return VariableValue(tuple(entries), _join(lparen.span, rparen.span))

    def _variable_entry(self) -> VariableEntry:
        location = [self._axis_coordinate()]
        while self._peek() is TokenKind.COMMA:
            self._advance()
            location.append(self._axis_coordinate())
        self._expect(TokenKind.COLON)
        return VariableEntry(tuple(location), self._number())

    def _axis_coordinate(self) -> AxisCoordinate:
        axis = self._name("axis tag")
        self._expect(TokenKind.EQUALS)
        return AxisCoordinate(axis, self._number())


def parse(source: bytes, diagnostics: Diagnostics) -> Optional[FeatureFile]:
    return Parser(tokenize(source, diagnostics), diagnostics).parse()
