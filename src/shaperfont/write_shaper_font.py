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

"""Writes a font for shaping tests from a feature file.

Sample usage:

write_shaper_font --glyph_order .notdef,A,V --fea_file kern.fea

write_shaper_font my_config.toml
"""

from absl import app
from absl import logging
import json
from pathlib import Path
from shaperfont import config
from shaperfont.compiler import CompiledFont, compile_font
from shaperfont.config import FontConfig
from shaperfont.diagnostics import Level
import sys
from typing import Optional


def _config_file(argv) -> Optional[Path]:
    if len(argv) > 2:
        raise app.UsageError(f"At most one config file please, got {argv[1:]}")
    if len(argv) == 2:
        return Path(argv[1])
    return None


def _log_diagnostics(result: CompiledFont):
    for diagnostic, message in zip(result.diagnostics, result.formatted_diagnostics):
        if diagnostic.level is Level.ERROR:
            logging.error("%s", message)
        else:
            logging.warning("%s", message)


def _write_insert_markers(dest: Path, result: CompiledFont):
    markers = [
        {"tag": m.tag, "lookupId": m.lookup_id} for m in result.insert_markers
    ]
    dest.write_text(json.dumps(markers, indent=2) + "\n")
    logging.info("Wrote %d insert markers to %s", len(markers), dest)


def write_shaper_font(font_config: FontConfig) -> CompiledFont:
    fea_file = Path(font_config.fea_file)
    result = compile_font(
        font_config.upem,
        font_config.glyph_order,
        fea_file.read_bytes(),
        font_config.axes,
        font_config.keep_glyph_names,
        file_label=fea_file.name,
    )
    _log_diagnostics(result)
    if result.font_data is None:
        return result

    Path(font_config.output_file).write_bytes(result.font_data)
    logging.info("Wrote %s", font_config.output_file)
    if font_config.insert_markers_file:
        _write_insert_markers(Path(font_config.insert_markers_file), result)
    return result


def _run(argv):
    font_config = config.load(_config_file(argv))
    result = write_shaper_font(font_config)
    if result.font_data is None:
        sys.exit(f"Unable to compile {font_config.fea_file}")


def main():
    # We don't seem to be __main__ when run as cli tool installed by setuptools
    app.run(_run)


if __name__ == "__main__":
    app.run(_run)
