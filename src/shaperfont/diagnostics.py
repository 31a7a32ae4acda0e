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

"""Span-tracked compiler messages.

Spans are UTF-8 byte offsets into the feature source. Hosts that index
strings in UTF-16 code units (browsers, .NET) also get the equivalent
UTF-16 span on every diagnostic.
"""

from enum import Enum
from typing import Iterable, Iterator, List, NamedTuple, Tuple, Union


DEFAULT_FILE_LABEL = "features.fea"


class Level(Enum):
    ERROR = "error"
    WARNING = "warning"


class SourceSpan(NamedTuple):
    start: int
    end: int

    def __len__(self) -> int:
        return self.end - self.start

    @classmethod
    def after(cls, span: "SourceSpan") -> "SourceSpan":
        """The one-byte span immediately following span."""
        return cls(span.end, span.end + 1)


class Diagnostic(NamedTuple):
    level: Level
    text: str
    span: SourceSpan
    # same range, in UTF-16 code units
    utf16_span: SourceSpan

    @property
    def is_error(self) -> bool:
        return self.level is Level.ERROR


def _as_bytes(source: Union[str, bytes]) -> bytes:
    if isinstance(source, str):
        return source.encode("utf-8")
    return bytes(source)


def utf16_offset(source: bytes, byte_offset: int) -> int:
    """Map a UTF-8 byte offset to the matching UTF-16 code unit offset.

    >>> utf16_offset("a😀b".encode("utf-8"), 5)
    3
    >>> utf16_offset(b"abc", 4)
    4
    """
    overflow = max(0, byte_offset - len(source))
    prefix = source[: byte_offset - overflow].decode("utf-8")
    return len(prefix.encode("utf-16-le")) // 2 + overflow


class Diagnostics:
    """Ordered collection of diagnostics reported against one source."""

    def __init__(self, source: Union[str, bytes]):
        self.source = _as_bytes(source)
        self._diagnostics: List[Diagnostic] = []

    def report(self, level: Level, text: str, span: SourceSpan) -> Diagnostic:
        assert 0 <= span.start <= span.end, f"Bad span {span}"
        diagnostic = Diagnostic(
            level,
            text,
            SourceSpan(*span),
            SourceSpan(
                utf16_offset(self.source, span.start),
                utf16_offset(self.source, span.end),
            ),
        )
        self._diagnostics.append(diagnostic)
        return diagnostic

    def error(self, text: str, span: SourceSpan) -> Diagnostic:
        return self.report(Level.ERROR, text, span)

    def warning(self, text: str, span: SourceSpan) -> Diagnostic:
        return self.report(Level.WARNING, text, span)

    def has_errors(self) -> bool:
        return any(d.is_error for d in self._diagnostics)

    def __iter__(self) -> Iterator[Diagnostic]:
        return iter(self._diagnostics)

    def __len__(self) -> int:
        return len(self._diagnostics)

    def __bool__(self) -> bool:
        return bool(self._diagnostics)

    def to_tuple(self) -> Tuple[Diagnostic, ...]:
        return tuple(self._diagnostics)


def _line_bounds(source: bytes, offset: int) -> Tuple[int, int, int]:
    # returns (1-based line number, line start, line end excluding newline)
    offset = min(offset, len(source))
    line_start = source.rfind(b"\n", 0, offset) + 1
    line_end = source.find(b"\n", offset)
    if line_end == -1:
        line_end = len(source)
    line_no = source.count(b"\n", 0, line_start) + 1
    return line_no, line_start, line_end


def _char_len(data: bytes) -> int:
    return len(data.decode("utf-8"))


def format(
    diagnostic: Diagnostic,
    source: Union[str, bytes],
    file_label: str = DEFAULT_FILE_LABEL,
) -> str:
    source = _as_bytes(source)
    start, end = diagnostic.span
    line_no, line_start, line_end = _line_bounds(source, start)
    line = source[line_start:line_end].rstrip(b"\r")

    column = _char_len(source[line_start : min(start, line_end)]) + 1
    if start > line_end:
        column += start - line_end

    # clip to this line, the caret may sit one past the end of it
    clipped_end = max(min(end, line_end + 1), start + 1)
    width = max(1, _char_len(source[start : min(clipped_end, line_end)]))

    gutter = " " * len(str(line_no))
    return "\n".join(
        (
            f"{diagnostic.level.value}: {diagnostic.text}",
            f"in {file_label} at {line_no}:{column}",
            f"{line_no} | {line.decode('utf-8')}",
            f"{gutter} | {' ' * (column - 1)}{'^' * width}",
        )
    )


def format_all(
    diagnostics: Iterable[Diagnostic],
    source: Union[str, bytes],
    file_label: str = DEFAULT_FILE_LABEL,
) -> str:
    return "\n\n".join(format(d, source, file_label) for d in diagnostics)
