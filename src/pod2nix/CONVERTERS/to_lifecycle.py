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
Converters for generating systemd units that manage named volumes and networks.
"""
import shlex
from typing import List

from ..MODELS.compose_manifest import ContainerBackend
from ..UTILS.nix_format import TEMPLATE_ENV

LIFECYCLE_TEMPLATE = TEMPLATE_ENV.from_string("""\
  systemd.services.{{ unit | nix_str }} = {
    path = [ pkgs.{{ backend }} ];
    serviceConfig = {
      Type = "oneshot";
      RemainAfterExit = true;
      ExecStart = "${pkgs.runtimeShell} -c {{ start_script | nix_escape }}";
      ExecStop = "${pkgs.runtimeShell} -c {{ stop_script | nix_escape }}";
    };
    wantedBy = [ "multi-user.target" ];
  };""")


class LifecycleConverter:
    """
    Generates oneshot systemd units that create a resource on start and remove it on stop.
    """

    def __init__(self, backend: ContainerBackend = ContainerBackend.DOCKER):
        """
        :param backend: The runtime whose CLI manages the resources.
        """
        self.backend = ContainerBackend(backend)

    def generate_unit(self, kind: str, name: str) -> str:
        """
        Renders the unit for one resource.

        The name is shell-quoted inside the scripts, and each script is quoted
        again as the single argument to ``-c``.
        """
        runtime = f"{self.backend.value} {kind}"
        quoted = shlex.quote(name)
        start = f"{runtime} inspect {quoted} >/dev/null 2>&1 || {runtime} create {quoted}"
        stop = f"{runtime} rm -f {quoted}"
        return LIFECYCLE_TEMPLATE.render(
            unit=f"{self.backend.value}-{kind}-{name}",
            backend=self.backend.value,
            start_script=shlex.quote(start),
            stop_script=shlex.quote(stop),
        )

    def generate_units(self, kind: str, names: List[str]) -> List[str]:
        """
        Renders one unit per resource.

        :param kind: ``volume`` or ``network``.
        :param names: Resource names, already de-duplicated.
        :return: One block per name, in order.
        """
        return [self.generate_unit(kind, name) for name in names]

    def generate_volume_services(self, volumes: List[str]) -> List[str]:
        return self.generate_units("volume", volumes)

    def generate_network_services(self, networks: List[str]) -> List[str]:
        return self.generate_units("network", networks)
