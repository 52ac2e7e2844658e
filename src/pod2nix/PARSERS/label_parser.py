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
Parsers for service labels and environment entries, including Traefik routing labels.
"""
import logging
import re
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from ..MODELS.compose_manifest import ServiceSpec
from ..MODELS.routing_rule import RoutingRule
from ..UTILS.value_coercion import normalize_mapping, parse_key_value_list

logger = logging.getLogger(__name__)

TRAEFIK_PREFIX = "traefik."
TRAEFIK_NETWORK_LABEL = "traefik.docker.network"
LOADBALANCER_PORT_SUFFIX = "loadbalancer.server.port"

HOST_RULE_PATTERN = re.compile(r'Host\(`([^`]+)`\)')


def parse_labels_array(labels: List[Any]) -> Dict[str, str]:
    """
    Converts ``["key1=value1", "key2=value2"]`` into ``{"key1": "value1", "key2": "value2"}``.
    """
    return parse_key_value_list(labels)


def parse_env_array(env: List[Any]) -> Dict[str, str]:
    """
    Converts ``["KEY=value"]`` into ``{"KEY": "value"}``. Values may contain ``=``.
    """
    return parse_key_value_list(env)


def parse_traefik_labels(labels: Any, service_name: str) -> List[RoutingRule]:
    """
    Derives routing rules from a service's ``traefik.http.*`` labels.

    Router and service labels are grouped by their name segment. The load
    balancer URL always points at the Compose service itself. Groups that end
    up without a name, URL and host are dropped.

    :param labels: The service labels, in list or mapping form.
    :param service_name: The Compose service the labels belong to.
    :return: Complete routing rules, in order of first appearance.
    """
    label_map = normalize_mapping(labels) or {}
    routes: Dict[str, Dict[str, Any]] = {}

    for key, value in label_map.items():
        if not key.startswith(TRAEFIK_PREFIX):
            continue
        parts = key.split(".")
        if len(parts) < 4:
            continue

        _, section, kind, name, *rest = parts
        if section != "http" or kind not in ("routers", "services") or not name:
            continue

        route = routes.setdefault(name, {"name": name})
        if kind == "routers":
            if rest[:1] == ["rule"]:
                match = HOST_RULE_PATTERN.search(value)
                if match:
                    route["host"] = match.group(1)
            elif rest[:1] == ["entrypoints"]:
                route["entrypoint"] = value
            elif rest[:2] == ["tls", "certresolver"]:
                route["cert_resolver"] = value
                route["enable_tls"] = True
        elif ".".join(rest) == LOADBALANCER_PORT_SUFFIX:
            route["url"] = f"http://{service_name}:{value}"

    rules = []
    for name, fields in routes.items():
        if not (fields.get("url") and fields.get("host")):
            logger.debug("Skipping incomplete Traefik route %s on service %s", name, service_name)
            continue
        try:
            rules.append(RoutingRule(**fields))
        except ValidationError as e:
            logger.debug("Skipping invalid Traefik route %s on service %s: %s", name, service_name, e)
    return rules


def routing_network(labels: Optional[Dict[str, str]]) -> Optional[str]:
    return (labels or {}).get(TRAEFIK_NETWORK_LABEL) or None


def attach_routing_network(service: ServiceSpec) -> None:
    """
    Adds the network named by ``traefik.docker.network`` to the service's networks.

    :param service: The service to update in place.
    """
    network = routing_network(service.labels)
    if not network:
        return
    if service.networks is None:
        service.networks = []
    if network not in service.networks:
        service.networks.append(network)
