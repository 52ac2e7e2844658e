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
Models for the generated NixOS module, built as an ordered list of sections.
"""
from dataclasses import dataclass, field
from typing import List

from ..UTILS.nix_format import collapse_blank_lines

MODULE_ARGUMENTS = "{ pkgs, lib, ... }:"


@dataclass
class NixSection:
    """One commented group of attribute blocks inside the module."""

    title: str
    blocks: List[str] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not any(block.strip() for block in self.blocks)

    def render(self) -> str:
        body = "\n\n".join(block for block in self.blocks if block.strip())
        return f"  # {self.title}\n{body}"


@dataclass
class NixDocument:
    """
    An ordered sequence of sections rendered into a single NixOS module.

    Empty sections are skipped and the rendered text never contains more
    than one consecutive blank line.
    """

    sections: List[NixSection] = field(default_factory=list)

    def add_section(self, title: str, blocks: List[str]) -> NixSection:
        section = NixSection(title=title, blocks=list(blocks))
        self.sections.append(section)
        return section

    def render(self) -> str:
        body = "\n\n".join(s.render() for s in self.sections if not s.is_empty())
        text = f"{MODULE_ARGUMENTS}\n\n{{\n{body}\n}}\n"
        return collapse_blank_lines(text)
