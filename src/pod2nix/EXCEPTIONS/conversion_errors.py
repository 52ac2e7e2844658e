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
Errors raised when a Compose manifest cannot be converted.
"""

CONVERSION_ERROR_PREFIX = "Failed to convert Docker Compose: "


class ConversionError(Exception):
    """Raised when a Compose manifest cannot be turned into a NixOS module."""

    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(f"{CONVERSION_ERROR_PREFIX}{detail}")


class ManifestParseError(ConversionError):
    """Raised when the manifest text is not valid YAML."""

    pass


class ManifestValidationError(ConversionError):
    """Raised when the manifest parses but has no services mapping."""

    pass
