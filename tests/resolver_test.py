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

from shaperfont.diagnostics import Diagnostics, Level, SourceSpan
from shaperfont.parser import parse
from shaperfont.resolver import (
    Feature,
    InsertMarker,
    PairAdjustment,
    ResolvedValue,
    resolve,
)
from shaperfont.variation import Axis, DesignSpace
import pytest


_GLYPHS = (".notdef", "A", "V", "T", "o")
_WGHT = Axis("wght", 100, 400, 900)


def _resolve(body: str, axes=(), language_systems="languagesystem DFLT dflt;\n"):
    source = (language_systems + body).encode("utf-8")
    diagnostics = Diagnostics(source)
    feature_file = parse(source, diagnostics)
    assert feature_file is not None, list(diagnostics)
    space = DesignSpace(axes) if axes else None
    return resolve(feature_file, _GLYPHS, space, diagnostics), diagnostics, source


def _messages(diagnostics):
    return [(d.level, d.text) for d in diagnostics]


def test_contiguous_pairs_share_a_lookup():
    layout, diagnostics, _ = _resolve(
        "feature kern {\n"
        "  pos A V -50;\n"
        "  pos T o -80;\n"
        "  # Automatic Code\n"
        "  pos V A -40;\n"
        "} kern;\n"
    )
    assert not diagnostics
    assert [(l.lookup_id, len(l.pairs)) for l in layout.lookups] == [(1, 2), (2, 1)]
    assert layout.lookups[0].pairs == (
        PairAdjustment("A", "V", ResolvedValue(-50)),
        PairAdjustment("T", "o", ResolvedValue(-80)),
    )
    assert layout.features == (Feature("kern", (1, 2)),)
    assert layout.insert_markers == (InsertMarker("kern", 1),)


def test_lookup_ids_are_global():
    layout, diagnostics, _ = _resolve(
        "feature kern { pos A V -50; } kern;\n"
        "feature dist { pos T o -10; } dist;\n"
    )
    assert not diagnostics
    assert layout.features == (Feature("kern", (1,)), Feature("dist", (2,)))
    assert [l.feature_tag for l in layout.lookups] == ["kern", "dist"]


def test_insert_markers():
    layout, diagnostics, _ = _resolve(
        "feature kern {\n"
        "  pos A V -50;\n"
        "  # Automatic Code\n"
        "} kern;\n"
        "feature mark {\n"
        "  # Automatic Code\n"
        "} mark;\n"
    )
    assert not diagnostics
    assert layout.insert_markers == (InsertMarker("kern", 1), InsertMarker("mark", 1))


def test_marker_tag_is_unpadded():
    layout, _, _ = _resolve("feature ss1 { # Automatic Code\n} ss1;")
    assert layout.insert_markers == (InsertMarker("ss1", 0),)
    assert layout.features == (Feature("ss1 ", ()),)


def test_unresolved_reference():
    layout, diagnostics, source = _resolve("feature aalt { feature liga; } aalt;")
    (diagnostic,) = diagnostics
    assert diagnostic.level is Level.WARNING
    assert diagnostic.text == "Referenced feature not found."
    start = source.index(b"liga")
    assert diagnostic.span == SourceSpan(start, start + 4)
    assert layout.features == (Feature("aalt", ()),)
    assert layout.lookups == ()


def test_forward_reference_attaches_lookups():
    layout, diagnostics, _ = _resolve(
        "feature aalt { feature kern; } aalt;\n"
        "feature kern { pos A V -50; } kern;\n"
    )
    assert not diagnostics
    assert layout.features == (Feature("aalt", (1,)), Feature("kern", (1,)))
    assert len(layout.lookups) == 1


def test_reference_ends_lookup():
    layout, diagnostics, _ = _resolve(
        "feature kern { pos A V -50; feature dist; pos T o -10; } kern;\n"
        "feature dist { pos V A -5; } dist;\n"
    )
    assert not diagnostics
    assert layout.features == (Feature("kern", (1, 2, 3)), Feature("dist", (3,)))


def test_self_reference():
    layout, diagnostics, _ = _resolve("feature kern { feature kern; } kern;")
    assert _messages(diagnostics) == [
        (Level.WARNING, "Feature cannot reference itself.")
    ]
    assert layout.features == (Feature("kern", ()),)


def test_unknown_glyphs():
    _, diagnostics, source = _resolve("feature kern { pos A Zed -50; } kern;")
    (diagnostic,) = diagnostics
    assert diagnostic.is_error
    assert diagnostic.text == "Unknown glyph 'Zed'."
    assert diagnostic.span == SourceSpan(source.index(b"Zed"), source.index(b"Zed") + 3)


def test_duplicate_pair_keeps_first():
    layout, diagnostics, _ = _resolve(
        "feature kern { pos A V -50; pos A V -10; } kern;"
    )
    assert _messages(diagnostics) == [
        (Level.WARNING, "Pair 'A V' already defined; ignoring.")
    ]
    assert layout.lookups[0].pairs == (PairAdjustment("A", "V", ResolvedValue(-50)),)


def test_end_tag_mismatch():
    _, diagnostics, _ = _resolve("feature kern { } krn;")
    assert _messages(diagnostics) == [
        (Level.ERROR, "Feature end tag 'krn' does not match 'kern'.")
    ]


def test_duplicate_languagesystem():
    layout, diagnostics, _ = _resolve(
        "",
        language_systems="languagesystem DFLT dflt;\nlanguagesystem DFLT dflt;\n",
    )
    assert _messages(diagnostics) == [
        (Level.WARNING, "Duplicate languagesystem ignored.")
    ]
    assert layout.language_systems == (("DFLT", "dflt"),)


def test_invalid_tag():
    _, diagnostics, _ = _resolve("feature kerning { } kerning;")
    assert [d.level for d in diagnostics] == [Level.ERROR]
    assert diagnostics.to_tuple()[0].text.startswith("Invalid tag 'kerning'")


@pytest.mark.parametrize("value", ["1.5", "40000", "-32769"])
def test_value_must_be_int16(value):
    _, diagnostics, _ = _resolve(f"feature kern {{ pos A V {value}; }} kern;")
    assert _messages(diagnostics) == [
        (Level.ERROR, "Value must be an integer between -32768 and 32767.")
    ]


def test_variable_value():
    layout, diagnostics, _ = _resolve(
        "feature kern { pos A V (wght=400:-50 wght=900:0 wght=100:-100); } kern;",
        axes=(_WGHT,),
    )
    assert not diagnostics
    assert layout.lookups[0].pairs[0].value == ResolvedValue(
        -50, (((("wght", -1.0),), -100), ((("wght", 1.0),), 0))
    )


def test_variable_value_default_is_zero_when_absent():
    layout, diagnostics, _ = _resolve(
        "feature kern { pos A V (wght=900:20); } kern;", axes=(_WGHT,)
    )
    assert not diagnostics
    assert layout.values() == (ResolvedValue(0, (((("wght", 1.0),), 20),)),)


@pytest.mark.parametrize(
    "value, axes, expected",
    [
        ("(wght=900:0)", (), "Variable values require axes."),
        ("(wdth=75:0)", (_WGHT,), "Unknown axis 'wdth'."),
        ("(wght=1000:0)", (_WGHT,), "Location outside axis range."),
        (
            "(wght=900:0 wght=900:10)",
            (_WGHT,),
            "Duplicate location in value record.",
        ),
    ],
)
def test_variable_value_errors(value, axes, expected):
    _, diagnostics, _ = _resolve(
        f"feature kern {{ pos A V {value}; }} kern;", axes=axes
    )
    assert _messages(diagnostics) == [(Level.ERROR, expected)]


def test_insert_markers_sorted_by_tag():
    layout, diagnostics, _ = _resolve(
        "feature mark { # Automatic Code\n} mark;\n"
        "feature kern {\n"
        "  pos A V -5;\n"
        "  # Automatic Code\n"
        "  pos T o -5;\n"
        "  # Automatic Code\n"
        "} kern;\n"
    )
    assert not diagnostics
    assert layout.insert_markers == (
        InsertMarker("kern", 1),
        InsertMarker("kern", 2),
        InsertMarker("mark", 0),
    )
