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

from absl import flags
import importlib.resources as resources
from pathlib import Path
from shaperfont.fixed import uint16_safe
from shaperfont.variation import Axis
import toml
from typing import Any, MutableMapping, NamedTuple, Optional, Tuple


FLAGS = flags.FLAGS


_DEFAULT_CONFIG_FILE = "_default.toml"


# we use None as a sentinel for flag not set; FontConfig class has the actual defaults.
# CLI flags override config file (which overrides default FontConfig).
flags.DEFINE_integer("upem", None, "Units per em.")
flags.DEFINE_string("output_file", None, "Output font filename.")
flags.DEFINE_string("fea_file", None, "Feature file.")
flags.DEFINE_string(
    "insert_markers_file",
    None,
    "If set, where to write the '# Automatic Code' insert markers as json.",
)
flags.DEFINE_list("glyph_order", None, "Glyph names in glyph id order.")
flags.DEFINE_bool(
    "keep_glyph_names", None, "Whether or not to store glyph names in the font."
)


class FontConfig(NamedTuple):
    upem: int = 1000
    output_file: str = "ShaperFont.ttf"
    fea_file: str = "features.fea"
    insert_markers_file: str = ""
    keep_glyph_names: bool = False
    glyph_order: Tuple[str, ...] = (".notdef",)
    axes: Tuple[Axis, ...] = ()

    @property
    def is_vf(self) -> bool:
        return bool(self.axes)

    def validate(self):
        if self.upem <= 0 or not uint16_safe(self.upem):
            raise ValueError("'upem' must be a positive 16-bit integer")

        if not self.glyph_order or self.glyph_order[0] != ".notdef":
            raise ValueError("'glyph_order' must start with '.notdef'")
        if len(set(self.glyph_order)) != len(self.glyph_order):
            raise ValueError("'glyph_order' must not repeat glyph names")

        for axis in self.axes:
            axis.validate()

        return self


def write(dest: Path, config: FontConfig):
    toml_cfg = {
        "upem": config.upem,
        "output_file": config.output_file,
        "fea_file": config.fea_file,
        "insert_markers_file": config.insert_markers_file,
        "keep_glyph_names": config.keep_glyph_names,
        "glyph_order": list(config.glyph_order),
        "axis": {
            a.tag: {
                "min": a.min_value,
                "default": a.default_value,
                "max": a.max_value,
            }
            for a in config.axes
        },
    }
    dest.write_text(toml.dumps(toml_cfg))


def _resolve_config(
    config_file: Optional[Path] = None,
) -> Tuple[Optional[Path], MutableMapping[str, Any]]:
    if config_file is None:
        default = resources.files("shaperfont.data").joinpath(_DEFAULT_CONFIG_FILE)
        # no config_dir in this context; relative paths stay relative to cwd
        return None, toml.loads(default.read_text())
    return config_file.parent, toml.load(config_file)


def _resolve_path(config_dir: Optional[Path], path: str) -> str:
    if not path or config_dir is None or Path(path).is_absolute():
        return path
    return str(config_dir / path)


_DEFAULT_CONFIG = FontConfig()


def _pop_flag(config: MutableMapping[str, Any], name: str) -> Any:
    config_value = config.pop(name, None)
    flag_value = getattr(FLAGS, name)
    if config_value is None and flag_value is None:
        return getattr(_DEFAULT_CONFIG, name)
    return flag_value if flag_value is not None else config_value


def load(config_file: Optional[Path] = None) -> FontConfig:
    config_dir, config = _resolve_config(config_file)

    # CLI flags will take precedence over the config file
    upem = int(_pop_flag(config, "upem"))
    output_file = _pop_flag(config, "output_file")
    fea_file = _pop_flag(config, "fea_file")
    insert_markers_file = _pop_flag(config, "insert_markers_file")
    keep_glyph_names = bool(_pop_flag(config, "keep_glyph_names"))
    glyph_order = tuple(_pop_flag(config, "glyph_order"))

    # paths given on the command line are relative to cwd, not the config
    if FLAGS.fea_file is None:
        fea_file = _resolve_path(config_dir, fea_file)

    axes = []
    for axis_tag, axis_config in config.pop("axis", {}).items():
        axes.append(
            Axis(
                axis_tag,
                float(axis_config.pop("min")),
                float(axis_config.pop("default")),
                float(axis_config.pop("max")),
            )
        )
        if axis_config:
            raise ValueError(f"Unexpected '{axis_tag}' config: {axis_config}")

    if config:
        raise ValueError(f"Unexpected config: {config}")

    return FontConfig(
        upem=upem,
        output_file=output_file,
        fea_file=fea_file,
        insert_markers_file=insert_markers_file,
        keep_glyph_names=keep_glyph_names,
        glyph_order=glyph_order,
        axes=tuple(axes),
    ).validate()
