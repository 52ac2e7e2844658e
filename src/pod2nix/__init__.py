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
pod2nix - Docker Compose to NixOS

Compiles a Docker Compose manifest into a NixOS module declaring OCI containers,
systemd overrides, volume and network lifecycle units, and Traefik routing.
"""

__version__ = "0.1.0"
__author__ = "Michael Maillet, Damien Davison, Sacha Davison"
__license__ = "Apache-2.0"

from .CONVERTERS.to_nix import convert_compose_to_nix
from .EXCEPTIONS.conversion_errors import (
    ConversionError,
    ManifestParseError,
    ManifestValidationError,
)
from .MODELS.routing_rule import RoutingRule
from .MODELS.compose_manifest import ContainerBackend

__all__ = [
    "convert_compose_to_nix",
    "ConversionError",
    "ManifestParseError",
    "ManifestValidationError",
    "RoutingRule",
    "ContainerBackend",
]
