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

"""Writes compiled tables into an sfnt container."""

from absl import logging
from fontTools import ttLib
from fontTools.ttLib.sfnt import SFNTWriter
import io
from typing import Dict, Mapping


# no glyf or CFF; TrueType flavored container
SFNT_VERSION = b"\x00\x01\x00\x00"


def _compile_table(font: ttLib.TTFont, tag: str, compiled: Dict[str, bytes]):
    if tag in compiled:
        return
    # e.g. hmtx updates hhea.numberOfHMetrics so must compile first
    for dependency in ttLib.getTableClass(tag).dependencies:
        if dependency in font:
            _compile_table(font, dependency, compiled)
    compiled[tag] = font[tag].compile(font)


def compile_tables(font: ttLib.TTFont) -> Dict[str, bytes]:
    compiled = {}
    for tag in font.keys():
        if tag == "GlyphOrder":
            continue
        _compile_table(font, tag, compiled)
    return compiled


def assemble_tables(tables: Mapping[str, bytes]) -> bytes:
    """Concatenate compiled tables into one font blob.

    Table data is written in tag order. SFNTWriter sorts the directory,
    pads every table to a 4-byte boundary and fills in
    head.checkSumAdjustment on close.
    """
    if "head" not in tables:
        raise ValueError("A font needs a head table")

    buf = io.BytesIO()
    writer = SFNTWriter(buf, len(tables), sfntVersion=SFNT_VERSION)
    for tag in sorted(tables):
        writer[tag] = bytes(tables[tag])
    writer.close()

    blob = buf.getvalue()
    logging.debug("Assembled %d tables, %d bytes", len(tables), len(blob))
    return blob


def assemble(font: ttLib.TTFont) -> bytes:
    return assemble_tables(compile_tables(font))
