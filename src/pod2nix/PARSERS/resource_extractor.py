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
Extraction of named volumes and networks that need lifecycle units.
"""
from typing import Dict, List

from ..MODELS.compose_manifest import ComposeManifest


def extract_volumes(manifest: ComposeManifest) -> List[str]:
    """
    Collects named volumes: top-level declarations first, then service references.

    A mount entry with a ``/`` is a bind mount and never names a volume. For
    other entries the part before the first ``:`` is the volume name.

    :param manifest: The parsed manifest.
    :return: Unique volume names in order of discovery.
    """
    volumes: Dict[str, None] = dict.fromkeys(manifest.volumes)

    for service in manifest.services.values():
        for volume in service.volumes or []:
            if "/" in volume:
                continue
            name = volume.split(":", 1)[0]
            if name:
                volumes.setdefault(name, None)

    return list(volumes)


def extract_networks(manifest: ComposeManifest) -> List[str]:
    """
    Collects the networks declared at the top level of the manifest.

    :param manifest: The parsed manifest.
    :return: Unique network names in declaration order.
    """
    return list(dict.fromkeys(manifest.networks))
