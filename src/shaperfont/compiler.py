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

"""Compiles feature source into a minimal font for shaping tests.

Stages run in order: lex and parse, resolve, build variations (only with
axes), build tables, assemble. The first error diagnostic ends the run and
no font data is produced; warnings never do.

Sample usage:

    result = compile_font(1000, [".notdef", "A", "V"], fea_text)
    if result.font_data is None:
        print(result.messages)
"""

from absl import logging
from shaperfont import assembler, diagnostics, parser, resolver, tables, variation
from shaperfont.diagnostics import DEFAULT_FILE_LABEL, Diagnostic, Diagnostics
from shaperfont.fixed import uint16_safe
from shaperfont.resolver import InsertMarker
from shaperfont.variation import Axis, DesignSpace
from typing import Iterable, NamedTuple, Optional, Sequence, Tuple, Union


NOTDEF = ".notdef"


class CompileRequest(NamedTuple):
    units_per_em: int
    glyph_order: Tuple[str, ...]
    # UTF-8
    feature_source: bytes
    axes: Tuple[Axis, ...] = ()
    keep_glyph_names: bool = False
    file_label: str = DEFAULT_FILE_LABEL

    def validate(self) -> "CompileRequest":
        if (
            isinstance(self.units_per_em, bool)
            or not isinstance(self.units_per_em, int)
            or self.units_per_em <= 0
            or not uint16_safe(self.units_per_em)
        ):
            raise ValueError(
                f"units_per_em must be a positive 16-bit integer, got {self.units_per_em!r}"
            )

        if not self.glyph_order or self.glyph_order[0] != NOTDEF:
            raise ValueError(f"glyph_order must start with '{NOTDEF}'")
        if not all(isinstance(g, str) and g for g in self.glyph_order):
            raise ValueError("Glyph names must be non-empty strings")
        if len(set(self.glyph_order)) != len(self.glyph_order):
            raise ValueError("Glyph names must be unique")

        try:
            self.feature_source.decode("utf-8")
        except UnicodeDecodeError as e:
            raise ValueError("feature_source is not valid UTF-8") from e

        for axis in self.axes:
            axis.validate()
        if len({a.tag for a in self.axes}) != len(self.axes):
            raise ValueError("Axis tags must be unique")
        return self


class CompiledFont(NamedTuple):
    font_data: Optional[bytes]
    insert_markers: Tuple[InsertMarker, ...]
    diagnostics: Tuple[Diagnostic, ...]
    formatted_diagnostics: Tuple[str, ...]

    @property
    def messages(self) -> str:
        """Every diagnostic, formatted, as one string; empty if there are none."""
        return "\n\n".join(self.formatted_diagnostics)

    @property
    def has_errors(self) -> bool:
        return any(d.is_error for d in self.diagnostics)


def _axis(axis: Union[Axis, Sequence]) -> Axis:
    if isinstance(axis, Axis):
        return axis
    tag, min_value, default_value, max_value = axis
    return Axis(tag, min_value, default_value, max_value)


def make_request(
    units_per_em: int,
    glyph_order: Iterable[str],
    feature_source: Union[str, bytes],
    axes: Optional[Iterable[Union[Axis, Sequence]]] = None,
    keep_glyph_names: bool = False,
    file_label: str = DEFAULT_FILE_LABEL,
) -> CompileRequest:
    if isinstance(feature_source, str):
        feature_source = feature_source.encode("utf-8")
    return CompileRequest(
        units_per_em,
        tuple(glyph_order),
        bytes(feature_source),
        tuple(_axis(a) for a in axes or ()),
        keep_glyph_names,
        file_label,
    ).validate()


def _result(
    request: CompileRequest,
    font_data: Optional[bytes],
    insert_markers: Tuple[InsertMarker, ...],
    diags: Diagnostics,
) -> CompiledFont:
    return CompiledFont(
        font_data,
        insert_markers,
        diags.to_tuple(),
        tuple(
            diagnostics.format(d, request.feature_source, request.file_label)
            for d in diags
        ),
    )


def compile_request(request: CompileRequest) -> CompiledFont:
    diags = Diagnostics(request.feature_source)

    feature_file = parser.parse(request.feature_source, diags)
    if feature_file is None or diags.has_errors():
        return _result(request, None, (), diags)

    space = DesignSpace(request.axes) if request.axes else None
    layout = resolver.resolve(feature_file, request.glyph_order, space, diags)
    if diags.has_errors():
        return _result(request, None, layout.insert_markers, diags)

    variations = None
    if space is not None:
        variations = variation.build(space, layout.values())

    font = tables.build_font(
        request.units_per_em,
        request.glyph_order,
        layout,
        request.axes,
        variations,
        request.keep_glyph_names,
    )
    font_data = assembler.assemble(font)
    logging.debug(
        "Compiled %d bytes, %d diagnostics, %d insert markers",
        len(font_data),
        len(diags),
        len(layout.insert_markers),
    )
    return _result(request, font_data, layout.insert_markers, diags)


def compile_font(
    units_per_em: int,
    glyph_order: Iterable[str],
    feature_source: Union[str, bytes],
    axes: Optional[Iterable[Union[Axis, Sequence]]] = None,
    keep_glyph_names: bool = False,
    file_label: str = DEFAULT_FILE_LABEL,
) -> CompiledFont:
    """Compile feature source into a font blob plus diagnostics.

    Args:
        units_per_em: design units per em, written to head.
        glyph_order: unique glyph names, ".notdef" first; index is glyph id.
        feature_source: feature file text.
        axes: optional (tag, min, default, max) per variation axis.

    Raises:
        ValueError: the arguments themselves are malformed. Problems in the
            feature source are reported as diagnostics instead.
    """
    return compile_request(
        make_request(
            units_per_em,
            glyph_order,
            feature_source,
            axes,
            keep_glyph_names,
            file_label,
        )
    )
