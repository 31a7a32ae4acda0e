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


"""Compiles feature files into minimal fonts for shaping tests."""

from shaperfont.compiler import CompiledFont, compile_font
from shaperfont.diagnostics import Diagnostic, Level, SourceSpan
from shaperfont.resolver import InsertMarker
from shaperfont.variation import Axis


__all__ = [
    "Axis",
    "CompiledFont",
    "Diagnostic",
    "InsertMarker",
    "Level",
    "SourceSpan",
    "compile_font",
]
