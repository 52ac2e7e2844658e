# Copyright 2024 Michael Maillet, Damien Davison, Sacha Davison
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Formatting helpers for emitting Nix expressions from Jinja2 templates.
"""
import re
from typing import Any

from jinja2 import Environment, StrictUndefined

_NIX_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_'-]*$")
_BLANK_RUN = re.compile(r"\n{3,}")


def nix_escape(value: Any) -> str:
    """
    Escapes a value for the inside of a double-quoted Nix string.

    Backslashes, double quotes and ``${`` are escaped so the value is taken literally.
    """
    text = str(value)
    return text.replace("\\", "\\\\").replace('"', '\\"').replace("${", "\\${")


def nix_str(value: Any) -> str:
    """
    Renders a value as a double-quoted Nix string.

    :param value: The value to quote. Non-strings are converted with ``str``.
    :return: The quoted Nix string.
    """
    return f'"{nix_escape(value)}"'


def nix_attr(name: Any) -> str:
    """
    Renders an attribute name, quoting it when it is not a plain Nix identifier.

    :param name: The attribute name.
    :return: The name as it should appear left of ``=``.
    """
    text = str(name)
    if _NIX_IDENTIFIER.match(text):
        return text
    return nix_str(text)


def collapse_blank_lines(text: str) -> str:
    """
    Collapses every run of three or more newlines into a single blank line.

    :param text: The generated text.
    :return: The text with at most one consecutive blank line.
    """
    return _BLANK_RUN.sub("\n\n", text)


TEMPLATE_ENV = Environment(
    trim_blocks=True,
    lstrip_blocks=True,
    keep_trailing_newline=False,
    undefined=StrictUndefined,
)
TEMPLATE_ENV.filters["nix_str"] = nix_str
TEMPLATE_ENV.filters["nix_attr"] = nix_attr
TEMPLATE_ENV.filters["nix_escape"] = nix_escape
