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
Converters for generating Traefik dynamic configuration from routing rules.
"""
from typing import Iterable

from ..MODELS.routing_rule import RoutingRule
from ..UTILS.nix_format import TEMPLATE_ENV

TRAEFIK_TEMPLATE = TEMPLATE_ENV.from_string("""\
  services.traefik.dynamicConfigOptions.http = {
{% if balanced %}
    services = {
{% for rule in balanced %}
{% if not loop.first %}

{% endif %}
      {{ rule.name | nix_attr }}.loadBalancer.servers = [
        {
          url = {{ rule.url | nix_str }};
        }
      ];
{% endfor %}
    };
{% endif %}
{% if balanced and routed %}

{% endif %}
{% if routed %}
    routers = {
{% for rule in routed %}
{% if not loop.first %}

{% endif %}
      {{ rule.name | nix_attr }} = {
        rule = {{ "Host(`%s`)" | format(rule.host) | nix_str }};
{% if rule.enable_tls and rule.cert_resolver %}
        tls = {
          certResolver = {{ rule.cert_resolver | nix_str }};
        };
{% endif %}
        service = {{ rule.name | nix_str }};
        entrypoints = {{ rule.entrypoint | nix_str }};
      };
{% endfor %}
    };
{% endif %}
  };""")


def generate_traefik_config(rules: Iterable[RoutingRule]) -> str:
    """
    Renders the ``services.traefik.dynamicConfigOptions.http`` block.

    A rule with a URL contributes a load balancer entry and a rule with a host
    contributes a router, so a partial rule appears in only one half.

    :param rules: Explicit rules followed by rules derived from labels.
    :return: The block, or an empty string when no rule contributes anything.
    """
    rules = list(rules)
    balanced = [rule for rule in rules if rule.name and rule.url]
    routed = [rule for rule in rules if rule.name and rule.host]
    if not balanced and not routed:
        return ""
    return TRAEFIK_TEMPLATE.render(balanced=balanced, routed=routed)
