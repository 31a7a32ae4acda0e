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

"""Builds the tables of a font that is just enough to shape with.

No outlines and no cmap; the shaping client maps codepoints to glyphs and
supplies advances itself. GSUB is not built since no supported statement
produces substitution lookups.
"""

from absl import logging
from fontTools import ttLib
from fontTools.fontBuilder import FontBuilder
from fontTools.otlLib import builder as otl
from fontTools.ttLib import newTable
from fontTools.ttLib.tables import otTables as ot
from fontTools.ttLib.tables.otBase import BaseTTXConverter
from fontTools.varLib.builder import buildVarDevTable
from shaperfont.resolver import (
    DEFAULT_LANGUAGE_TAG,
    Feature,
    Lookup,
    ResolvedLayout,
    ResolvedValue,
)
from shaperfont.variation import Axis, Variations
from typing import Dict, List, Optional, Sequence, Tuple


# Fixed timestamps keep the output byte-for-byte reproducible
_TIMESTAMP = 0


def keep_glyph_names(font: ttLib.TTFont):
    # ref https://github.com/googlefonts/ufo2ft/blob/ad28eea062e0dd48678309bd9ef86dfcc85fa85a/Lib/ufo2ft/postProcessor.py#L281-L285
    if "post" not in font:
        raise ValueError("No post table")
    post = font["post"]
    post.formatType = 2.0
    post.extraNames = []
    post.mapping = {}


def _value_record(
    value: ResolvedValue, variations: Optional[Variations]
) -> ot.ValueRecord:
    if variations is None or value not in variations.values:
        return otl.buildValue({"XAdvance": value.default})
    base, var_idx = variations.values[value]
    fields = {"XAdvance": base}
    if var_idx is not None:
        fields["XAdvDevice"] = buildVarDevTable(var_idx)
    return otl.buildValue(fields)


def _pair_pos_lookup(
    lookup: Lookup, glyph_map: Dict[str, int], variations: Optional[Variations]
) -> ot.Lookup:
    pairs = {
        (p.left, p.right): (_value_record(p.value, variations), None)
        for p in lookup.pairs
    }
    return otl.buildLookup(otl.buildPairPosGlyphs(pairs, glyph_map))


def _lang_sys(feature_indices: Sequence[int]) -> ot.LangSys:
    lang_sys = ot.LangSys()
    lang_sys.LookupOrder = None
    lang_sys.ReqFeatureIndex = 0xFFFF
    lang_sys.FeatureIndex = list(feature_indices)
    lang_sys.FeatureCount = len(lang_sys.FeatureIndex)
    return lang_sys


def _script_list(
    language_systems: Sequence[Tuple[str, str]], feature_indices: Sequence[int]
) -> ot.ScriptList:
    languages_by_script: Dict[str, List[str]] = {}
    for script, language in language_systems:
        languages_by_script.setdefault(script, []).append(language)

    script_list = ot.ScriptList()
    script_list.ScriptRecord = []
    for script_tag in sorted(languages_by_script):
        script = ot.Script()
        script.DefaultLangSys = None
        script.LangSysRecord = []
        for language in sorted(languages_by_script[script_tag]):
            if language == DEFAULT_LANGUAGE_TAG:
                script.DefaultLangSys = _lang_sys(feature_indices)
                continue
            record = ot.LangSysRecord()
            record.LangSysTag = language
            record.LangSys = _lang_sys(feature_indices)
            script.LangSysRecord.append(record)
        script.LangSysCount = len(script.LangSysRecord)

        script_record = ot.ScriptRecord()
        script_record.ScriptTag = script_tag
        script_record.Script = script
        script_list.ScriptRecord.append(script_record)
    script_list.ScriptCount = len(script_list.ScriptRecord)
    return script_list


def _feature_list(features: Sequence[Feature]) -> ot.FeatureList:
    feature_list = ot.FeatureList()
    feature_list.FeatureRecord = []
    for feature in sorted(features, key=lambda f: f.tag):
        table = ot.Feature()
        table.FeatureParams = None
        table.LookupListIndex = sorted(i - 1 for i in feature.lookup_ids)
        table.LookupCount = len(table.LookupListIndex)

        record = ot.FeatureRecord()
        record.FeatureTag = feature.tag
        record.Feature = table
        feature_list.FeatureRecord.append(record)
    feature_list.FeatureCount = len(feature_list.FeatureRecord)
    return feature_list


def build_gpos(
    layout: ResolvedLayout,
    glyph_order: Sequence[str],
    variations: Optional[Variations] = None,
) -> Optional[BaseTTXConverter]:
    if not layout.lookups:
        return None
    glyph_map = {name: gid for gid, name in enumerate(glyph_order)}

    lookup_list = ot.LookupList()
    lookup_list.Lookup = [
        _pair_pos_lookup(lookup, glyph_map, variations) for lookup in layout.lookups
    ]
    lookup_list.LookupCount = len(lookup_list.Lookup)

    # features without lookups do nothing; leave them out
    features = [f for f in layout.features if f.lookup_ids]
    feature_list = _feature_list(features)

    gpos = ot.GPOS()
    gpos.Version = 0x00010000
    gpos.ScriptList = _script_list(
        layout.language_systems, range(feature_list.FeatureCount)
    )
    gpos.FeatureList = feature_list
    gpos.LookupList = lookup_list

    table = newTable("GPOS")
    table.table = gpos
    return table


def build_gdef(var_store: ot.VarStore) -> BaseTTXConverter:
    gdef = ot.GDEF()
    gdef.Version = 0x00010003
    gdef.GlyphClassDef = None
    gdef.AttachList = None
    gdef.LigCaretList = None
    gdef.MarkAttachClassDef = None
    gdef.MarkGlyphSetsDef = None
    gdef.VarStore = var_store

    table = newTable("GDEF")
    table.table = gdef
    return table


def build_font(
    units_per_em: int,
    glyph_order: Sequence[str],
    layout: ResolvedLayout,
    axes: Sequence[Axis] = (),
    variations: Optional[Variations] = None,
    keep_names: bool = False,
) -> ttLib.TTFont:
    """Table objects for the font; the assembler compiles them."""
    fb = FontBuilder(units_per_em, isTTF=False)
    fb.updateHead(created=_TIMESTAMP, modified=_TIMESTAMP)
    fb.setupGlyphOrder(list(glyph_order))
    fb.setupHorizontalMetrics({name: (0, 0) for name in glyph_order})
    fb.setupHorizontalHeader()
    fb.setupMaxp()
    fb.font["maxp"].numGlyphs = len(glyph_order)
    fb.setupNameTable({}, mac=False)
    fb.setupPost(keepGlyphNames=False)
    if keep_names:
        keep_glyph_names(fb.font)

    if axes:
        fb.setupFvar(
            [(a.tag, a.min_value, a.default_value, a.max_value, a.tag) for a in axes],
            [],
        )

    gpos = build_gpos(layout, glyph_order, variations)
    if gpos is not None:
        fb.font["GPOS"] = gpos
    if variations is not None and variations.var_store is not None:
        fb.font["GDEF"] = build_gdef(variations.var_store)

    logging.debug("Built tables %s", sorted(t for t in fb.font.keys() if t != "GlyphOrder"))
    return fb.font
