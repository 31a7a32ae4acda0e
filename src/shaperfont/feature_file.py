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

"""Statement-level syntax tree of a feature file."""

from dataclasses import dataclass
from shaperfont.diagnostics import SourceSpan
from typing import NamedTuple, Tuple, Union


class Name(NamedTuple):
    """A glyph name, tag or axis tag as written in the source."""

    text: str
    span: SourceSpan


class Number(NamedTuple):
    text: str
    span: SourceSpan

    @property
    def value(self) -> Union[int, float]:
        if "." in self.text:
            return float(self.text)
        return int(self.text)

    @property
    def is_integer(self) -> bool:
        return "." not in self.text


class AxisCoordinate(NamedTuple):
    axis: Name
    coordinate: Number


class VariableEntry(NamedTuple):
    location: Tuple[AxisCoordinate, ...]
    value: Number


@dataclass(frozen=True)
class ScalarValue:
    value: Number

    @property
    def span(self) -> SourceSpan:
        return self.value.span


# (wght=400:-50 wght=900:0)
@dataclass(frozen=True)
class VariableValue:
    entries: Tuple[VariableEntry, ...]
    span: SourceSpan


ValueRecord = Union[ScalarValue, VariableValue]


@dataclass(frozen=True)
class LanguageSystem:
    script: Name
    language: Name
    span: SourceSpan


@dataclass(frozen=True)
class PositionPair:
    left: Name
    right: Name
    value: ValueRecord
    span: SourceSpan


@dataclass(frozen=True)
class FeatureReference:
    tag: Name
    span: SourceSpan


@dataclass(frozen=True)
class AutomaticCodeMarker:
    span: SourceSpan


Statement = Union[PositionPair, FeatureReference, AutomaticCodeMarker]


@dataclass(frozen=True)
class FeatureBlock:
    tag: Name
    statements: Tuple[Statement, ...]
    end_tag: Name
    span: SourceSpan


@dataclass(frozen=True)
class FeatureFile:
    language_systems: Tuple[LanguageSystem, ...] = ()
    features: Tuple[FeatureBlock, ...] = ()
