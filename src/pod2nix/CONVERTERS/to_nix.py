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
Converters for assembling a complete NixOS module from a Docker Compose manifest.
"""
import logging
from typing import Any, Dict, Iterable, List, Optional, Union

from pydantic import ValidationError

from ..EXCEPTIONS.conversion_errors import ManifestValidationError
from ..MODELS.compose_manifest import ComposeManifest, ContainerBackend
from ..MODELS.nix_document import NixDocument
from ..MODELS.routing_rule import RoutingRule
from ..PARSERS.compose_parser import ComposeParser
from ..PARSERS.label_parser import attach_routing_network, parse_traefik_labels
from ..PARSERS.resource_extractor import extract_networks, extract_volumes
from ..UTILS.nix_format import TEMPLATE_ENV
from .to_container import ContainerConverter
from .to_lifecycle import LifecycleConverter
from .to_traefik import generate_traefik_config

logger = logging.getLogger(__name__)

RUNTIME_TEMPLATE = TEMPLATE_ENV.from_string("""\
  virtualisation.{{ backend }} = {
    enable = true;
    autoPrune.enable = true;
  };
  virtualisation.oci-containers.backend = {{ backend | nix_str }};""")


class NixConverter:
    """
    Converts a parsed Compose manifest into a NixOS module.
    """

    def __init__(
        self,
        manifest: ComposeManifest,
        backend: Union[ContainerBackend, str] = ContainerBackend.DOCKER,
        routing_rules: Iterable[RoutingRule] = (),
    ):
        """
        Initializes the converter.

        :param manifest: The parsed manifest. Services may be updated in place
            when a ``traefik.docker.network`` label attaches a network.
        :param backend: The container runtime to target.
        :param routing_rules: Extra routing rules, rendered before derived ones.
        """
        self.manifest = manifest
        self.backend = ContainerBackend(backend)
        self.routing_rules = list(routing_rules)

    def convert(self) -> str:
        """
        Performs the conversion.

        :return: The NixOS module text.
        """
        project_name = self.manifest.project_name
        containers: List[str] = []
        overrides: List[str] = []
        routes: List[RoutingRule] = list(self.routing_rules)

        for name, service in self.manifest.services.items():
            routes.extend(parse_traefik_labels(service.labels, name))
            attach_routing_network(service)

            container, override = ContainerConverter(name, service, project_name, self.backend).convert()
            containers.append(container)
            if override:
                overrides.append(override)

        lifecycle = LifecycleConverter(self.backend)
        traefik_config = generate_traefik_config(routes)

        document = NixDocument()
        document.add_section("Runtime", [RUNTIME_TEMPLATE.render(backend=self.backend.value)])
        document.add_section("Containers", containers)
        document.add_section("Systemd service customizations", overrides)
        document.add_section("Volume services", lifecycle.generate_volume_services(extract_volumes(self.manifest)))
        document.add_section("Network services", lifecycle.generate_network_services(extract_networks(self.manifest)))
        document.add_section("Traefik configuration", [traefik_config])

        logger.debug(
            "Converted %d services (%d overrides, %d routes) for %s",
            len(containers), len(overrides), len(routes), self.backend.value,
        )
        return document.render()


def _validate_routing_rules(routing_rules: Iterable[Union[RoutingRule, Dict[str, Any]]]) -> List[RoutingRule]:
    rules = []
    for index, rule in enumerate(routing_rules, start=1):
        if isinstance(rule, RoutingRule):
            rules.append(rule)
            continue
        try:
            rules.append(RoutingRule.model_validate(rule))
        except ValidationError as e:
            raise ManifestValidationError(f"Invalid routing rule #{index}: {e}") from e
    return rules


def convert_compose_to_nix(
    manifest_text: str,
    backend: Union[ContainerBackend, str] = ContainerBackend.DOCKER,
    routing_rules: Iterable[Union[RoutingRule, Dict[str, Any]]] = (),
    context: Optional[Dict[str, Optional[str]]] = None,
) -> str:
    """
    Converts Docker Compose YAML into a NixOS module.

    :param manifest_text: The Compose YAML.
    :param backend: ``docker`` or ``podman``.
    :param routing_rules: Extra Traefik routes, as models or mappings.
    :param context: Optional variables for ${VAR} interpolation.
    :return: The generated NixOS configuration.
    :raises ManifestParseError: If the YAML is invalid.
    :raises ManifestValidationError: If the manifest has no services or a
        routing rule mapping is invalid.
    """
    rules = _validate_routing_rules(routing_rules)
    manifest = ComposeParser(context).parse_from_string(manifest_text)
    return NixConverter(manifest, backend, rules).convert()
