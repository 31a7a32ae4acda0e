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

from absl import app
import json
from shaperfont import config
from shaperfont import write_shaper_font
import pytest
from test_helper import locate_test_file, mkdtemp, reload_font, shape


def _config(config_file, **overrides):
    tmp_dir = mkdtemp()
    font_config = config.load(locate_test_file(config_file))
    font_config = font_config._replace(
        output_file=str(tmp_dir / "Font.ttf"),
        insert_markers_file=str(tmp_dir / "markers.json")
        if font_config.insert_markers_file
        else "",
    )
    return tmp_dir, font_config._replace(**overrides)


def test_write_font_and_markers():
    tmp_dir, font_config = _config("kern/config.toml")

    result = write_shaper_font.write_shaper_font(font_config)

    assert not result.diagnostics
    font_data = (tmp_dir / "Font.ttf").read_bytes()
    assert font_data == result.font_data
    assert reload_font(font_data).getGlyphOrder() == list(font_config.glyph_order)
    assert shape(font_data, font_config.glyph_order, "AV")[0] == ("A", 50)
    assert json.loads((tmp_dir / "markers.json").read_text()) == [
        {"tag": "kern", "lookupId": 1},
        {"tag": "mark", "lookupId": 1},
    ]


def test_write_variable_font():
    tmp_dir, font_config = _config("variable/config.toml")

    write_shaper_font.write_shaper_font(font_config)

    font = reload_font((tmp_dir / "Font.ttf").read_bytes())
    assert [a.axisTag for a in font["fvar"].axes] == ["wght"]
    assert not (tmp_dir / "markers.json").exists()


def test_errors_write_nothing():
    tmp_dir, font_config = _config(
        "kern/config.toml", fea_file=str(locate_test_file("kern/bad.fea"))
    )

    result = write_shaper_font.write_shaper_font(font_config)

    assert result.font_data is None
    assert [d.text for d in result.diagnostics] == ["Unknown glyph 'Zed'."]
    assert result.formatted_diagnostics[0].split("\n")[1] == "in bad.fea at 4:9"
    assert not (tmp_dir / "Font.ttf").exists()
    assert not (tmp_dir / "markers.json").exists()


def test_run_exits_on_errors():
    tmp_dir, font_config = _config(
        "kern/config.toml", fea_file=str(locate_test_file("kern/bad.fea"))
    )
    config_file = tmp_dir / "config.toml"
    config.write(config_file, font_config)

    with pytest.raises(SystemExit):
        write_shaper_font._run(["write_shaper_font", str(config_file)])


def test_too_many_config_files():
    with pytest.raises(app.UsageError):
        write_shaper_font._run(["write_shaper_font", "a.toml", "b.toml"])
