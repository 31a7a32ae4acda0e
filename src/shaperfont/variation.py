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

"""Design space normalization and item variation store for variable values.

A variable value is a default plus values at other locations of the design
space. Each becomes a base value stored in GPOS and a row of deltas in the
item variation store that the shaping engine interpolates at runtime.
"""

from absl import logging
from fontTools.misc.fixedTools import floatToFixedToFloat
from fontTools.ttLib.tables import otTables as ot
from fontTools.varLib.models import VariationModel, normalizeValue
from fontTools.varLib.varStore import OnlineVarStoreBuilder
from shaperfont.fixed import fixed_safe
from typing import (
    Dict,
    Iterable,
    Mapping,
    NamedTuple,
    Optional,
    Sequence,
    Tuple,
)


# ((axis tag, normalized coordinate), ...) in axis order, axes at default omitted
Location = Tuple[Tuple[str, float], ...]

DEFAULT_LOCATION: Location = ()


class Axis(NamedTuple):
    tag: str
    min_value: float
    default_value: float
    max_value: float

    def validate(self) -> "Axis":
        if len(self.tag) != 4 or not self.tag.isascii():
            raise ValueError(f"Axis tag must be 4 ASCII characters, got {self.tag!r}")
        if not self.min_value <= self.default_value <= self.max_value:
            raise ValueError(f"'{self.tag}' must satisfy min <= default <= max")
        if not fixed_safe(self.min_value, self.default_value, self.max_value):
            raise ValueError(f"'{self.tag}' values must fit in 16.16 Fixed")
        return self

    def contains(self, value: float) -> bool:
        return self.min_value <= value <= self.max_value

    def normalize(self, value: float) -> float:
        """Map value to [-1, 0] below the default and [0, 1] above it.

        Rounded to F2Dot14 like the region coordinates a font can store.

        >>> Axis("wght", 100, 400, 900).normalize(650)
        0.5
        >>> Axis("wght", 100, 400, 900).normalize(100)
        -1.0
        """
        normalized = normalizeValue(
            value, (self.min_value, self.default_value, self.max_value)
        )
        return floatToFixedToFloat(normalized, 14)


class DesignSpace:
    def __init__(self, axes: Sequence[Axis]):
        self.axes = tuple(axes)
        self._axes_by_tag = {a.tag: a for a in self.axes}

    @property
    def axis_tags(self) -> Tuple[str, ...]:
        return tuple(a.tag for a in self.axes)

    def axis(self, tag: str) -> Optional[Axis]:
        return self._axes_by_tag.get(tag)

    def normalize(self, location: Mapping[str, float]) -> Location:
        """Sparse normalized location for a user-space location."""
        result = []
        for axis in self.axes:
            if axis.tag not in location:
                continue
            coordinate = axis.normalize(location[axis.tag])
            if coordinate != 0:
                result.append((axis.tag, coordinate))
        return tuple(result)


class VariableValueBuilder:
    """Feeds variable values into an item variation store.

    Values sharing a set of locations share one VariationModel, and so one
    VarData subtable.
    """

    def __init__(self, space: DesignSpace):
        self._space = space
        self._store_builder = OnlineVarStoreBuilder(list(space.axis_tags))
        self._models: Dict[Tuple[Location, ...], VariationModel] = {}
        self._stored = 0

    def _model(self, locations: Tuple[Location, ...]) -> VariationModel:
        model = self._models.get(locations)
        if model is None:
            model = VariationModel(
                [dict(loc) for loc in locations],
                axisOrder=list(self._space.axis_tags),
            )
            self._models[locations] = model
        return model

    def add(
        self, default: int, masters: Iterable[Tuple[Location, int]]
    ) -> Tuple[int, Optional[int]]:
        """Returns (base value, variation index or None)."""
        masters = tuple(sorted(masters))
        if not masters:
            return default, None

        locations = (DEFAULT_LOCATION,) + tuple(loc for loc, _ in masters)
        values = [default] + [value for _, value in masters]
        self._store_builder.setModel(self._model(locations))
        base, var_idx = self._store_builder.storeMasters(values, round=round)
        if var_idx is None or var_idx == ot.NO_VARIATION_INDEX:
            return int(base), None
        self._stored += 1
        return int(base), var_idx

    def finish(self) -> Optional[ot.VarStore]:
        if not self._stored:
            return None
        logging.debug("%d variable values in the variation store", self._stored)
        return self._store_builder.finish()


class Variations(NamedTuple):
    # value -> (base value, variation index or None)
    values: Mapping[object, Tuple[int, Optional[int]]]
    var_store: Optional[ot.VarStore]


def build(space: DesignSpace, values: Iterable) -> Variations:
    """Build deltas for values exposing .default and .masters."""
    builder = VariableValueBuilder(space)
    result = {}
    for value in values:
        if value in result or not value.masters:
            continue
        result[value] = builder.add(value.default, value.masters)
    return Variations(result, builder.finish())
