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

"""Turns a parsed feature file into numbered lookups and features.

Contiguous positioning statements in a feature form one lookup. Lookup ids
are 1-based and follow source order across the whole file. References and
"# Automatic Code" markers end the current lookup. Insert markers are
reported sorted by feature tag.
"""

from absl import logging
import collections
from shaperfont.diagnostics import Diagnostics
from shaperfont.feature_file import (
    AutomaticCodeMarker,
    FeatureBlock,
    FeatureFile,
    FeatureReference,
    Name,
    Number,
    PositionPair,
    ScalarValue,
    ValueRecord,
    VariableValue,
)
from shaperfont.fixed import int16_safe
from shaperfont.variation import DEFAULT_LOCATION, DesignSpace, Location
from typing import Dict, List, MutableMapping, NamedTuple, Optional, Sequence, Tuple


DEFAULT_LANGUAGE_TAG = "dflt"


class ResolvedValue(NamedTuple):
    default: int
    # values at non-default locations; empty for a plain number
    masters: Tuple[Tuple[Location, int], ...] = ()

    @property
    def is_variable(self) -> bool:
        return bool(self.masters)


class PairAdjustment(NamedTuple):
    left: str
    right: str
    value: ResolvedValue


class Lookup(NamedTuple):
    lookup_id: int
    feature_tag: str
    pairs: Tuple[PairAdjustment, ...]

    @property
    def index(self) -> int:
        """Position in the GPOS LookupList."""
        return self.lookup_id - 1


class Feature(NamedTuple):
    tag: str
    # own lookups first, then those of referenced features
    lookup_ids: Tuple[int, ...]


class InsertMarker(NamedTuple):
    tag: str
    lookup_id: int


class ResolvedLayout(NamedTuple):
    language_systems: Tuple[Tuple[str, str], ...]
    lookups: Tuple[Lookup, ...]
    features: Tuple[Feature, ...]
    insert_markers: Tuple[InsertMarker, ...]

    def values(self) -> Tuple[ResolvedValue, ...]:
        return tuple(p.value for lookup in self.lookups for p in lookup.pairs)


def _is_tag_char(char: str) -> bool:
    return 0x20 <= ord(char) <= 0x7E


class _LookupBuilder:
    def __init__(self, lookup_id: int, feature_tag: str):
        self.lookup_id = lookup_id
        self.feature_tag = feature_tag
        self.pairs: Dict[Tuple[str, str], PairAdjustment] = {}

    def build(self) -> Lookup:
        return Lookup(self.lookup_id, self.feature_tag, tuple(self.pairs.values()))


class Resolver:
    def __init__(
        self,
        glyph_order: Sequence[str],
        space: Optional[DesignSpace],
        diagnostics: Diagnostics,
    ):
        self._glyphs = frozenset(glyph_order)
        self._space = space
        self._diagnostics = diagnostics

        self._lookups: List[_LookupBuilder] = []
        self._feature_lookups: MutableMapping[
            str, List[int]
        ] = collections.OrderedDict()
        self._references: List[Tuple[str, FeatureReference]] = []
        self._markers: List[InsertMarker] = []

    def resolve(self, feature_file: FeatureFile) -> ResolvedLayout:
        language_systems = self._language_systems(feature_file)
        for block in feature_file.features:
            self._feature(block)
        features = self._features()
        logging.debug(
            "%d lookups in %d features", len(self._lookups), len(features)
        )
        return ResolvedLayout(
            language_systems,
            tuple(l.build() for l in self._lookups),
            features,
            # stable: markers of one feature keep their source order
            tuple(sorted(self._markers, key=lambda m: m.tag)),
        )

    # Tags

    def _tag(self, name: Name) -> Optional[str]:
        if not 1 <= len(name.text) <= 4 or not all(
            _is_tag_char(c) for c in name.text
        ):
            self._diagnostics.error(
                f"Invalid tag '{name.text}'; tags are 1 to 4 ASCII characters.",
                name.span,
            )
            return None
        return name.text.ljust(4)

    def _language_systems(self, feature_file: FeatureFile) -> Tuple[Tuple[str, str], ...]:
        result = []
        for statement in feature_file.language_systems:
            script = self._tag(statement.script)
            language = self._tag(statement.language)
            if script is None or language is None:
                continue
            if (script, language) in result:
                self._diagnostics.warning(
                    "Duplicate languagesystem ignored.", statement.span
                )
                continue
            result.append((script, language))
        return tuple(result)

    # Features and lookups

    def _feature(self, block: FeatureBlock):
        tag = self._tag(block.tag)
        if tag is None:
            return
        if block.end_tag.text != block.tag.text:
            self._diagnostics.error(
                f"Feature end tag '{block.end_tag.text}' does not match "
                f"'{block.tag.text}'.",
                block.end_tag.span,
            )

        own_lookups = self._feature_lookups.setdefault(tag, [])
        current: Optional[_LookupBuilder] = None
        for statement in block.statements:
            if isinstance(statement, PositionPair):
                if current is None:
                    current = _LookupBuilder(len(self._lookups) + 1, tag)
                    self._lookups.append(current)
                    own_lookups.append(current.lookup_id)
                self._position_pair(current, statement)
            elif isinstance(statement, FeatureReference):
                current = None
                self._references.append((tag, statement))
            elif isinstance(statement, AutomaticCodeMarker):
                current = None
                # generated code is inserted before the next lookup
                self._markers.append(InsertMarker(tag.rstrip(), len(self._lookups)))
            else:
                raise ValueError(f"Unknown statement {statement}")

    def _features(self) -> Tuple[Feature, ...]:
        referenced: Dict[str, List[int]] = collections.defaultdict(list)
        for owner, reference in self._references:
            tag = self._tag(reference.tag)
            if tag is None:
                continue
            if tag == owner:
                self._diagnostics.warning(
                    "Feature cannot reference itself.", reference.tag.span
                )
                continue
            if tag not in self._feature_lookups:
                self._diagnostics.warning(
                    "Referenced feature not found.", reference.tag.span
                )
                continue
            referenced[owner].extend(self._feature_lookups[tag])

        features = []
        for tag, own in self._feature_lookups.items():
            lookup_ids = list(own)
            lookup_ids.extend(i for i in referenced[tag] if i not in lookup_ids)
            features.append(Feature(tag, tuple(lookup_ids)))
        return tuple(features)

    def _glyph(self, name: Name) -> bool:
        if name.text not in self._glyphs:
            self._diagnostics.error(f"Unknown glyph '{name.text}'.", name.span)
            return False
        return True

    def _position_pair(self, lookup: _LookupBuilder, statement: PositionPair):
        known = [self._glyph(statement.left), self._glyph(statement.right)]
        value = self._value(statement.value)
        if not all(known) or value is None:
            return

        key = (statement.left.text, statement.right.text)
        if key in lookup.pairs:
            self._diagnostics.warning(
                f"Pair '{key[0]} {key[1]}' already defined; ignoring.",
                statement.span,
            )
            return
        lookup.pairs[key] = PairAdjustment(*key, value)

    # Value records

    def _integer(self, number: Number) -> Optional[int]:
        if not number.is_integer or not int16_safe(number.value):
            self._diagnostics.error(
                "Value must be an integer between -32768 and 32767.", number.span
            )
            return None
        return number.value

    def _value(self, record: ValueRecord) -> Optional[ResolvedValue]:
        if isinstance(record, ScalarValue):
            value = self._integer(record.value)
            return None if value is None else ResolvedValue(value)

        assert isinstance(record, VariableValue), record
        if self._space is None:
            self._diagnostics.error("Variable values require axes.", record.span)
            return None

        by_location: Dict[Location, int] = {}
        ok = True
        for entry in record.entries:
            location = self._location(entry.location)
            value = self._integer(entry.value)
            if location is None or value is None:
                ok = False
                continue
            if location in by_location:
                self._diagnostics.error(
                    "Duplicate location in value record.", entry.value.span
                )
                ok = False
                continue
            by_location[location] = value
        if not ok:
            return None

        default = by_location.pop(DEFAULT_LOCATION, 0)
        return ResolvedValue(default, tuple(sorted(by_location.items())))

    def _location(self, coordinates) -> Optional[Location]:
        user_location = {}
        for axis_name, coordinate in coordinates:
            axis = self._space.axis(axis_name.text)
            if axis is None:
                self._diagnostics.error(
                    f"Unknown axis '{axis_name.text}'.", axis_name.span
                )
                return None
            if axis.tag in user_location:
                self._diagnostics.error(
                    f"Axis '{axis.tag}' appears twice in one location.",
                    axis_name.span,
                )
                return None
            if not axis.contains(coordinate.value):
                self._diagnostics.error(
                    "Location outside axis range.", coordinate.span
                )
                return None
            user_location[axis.tag] = coordinate.value
        return self._space.normalize(user_location)


def resolve(
    feature_file: FeatureFile,
    glyph_order: Sequence[str],
    space: Optional[DesignSpace],
    diagnostics: Diagnostics,
) -> ResolvedLayout:
    return Resolver(glyph_order, space, diagnostics).resolve(feature_file)
