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
Converters for turning one Compose service into an OCI container declaration
and an optional systemd override.
"""
import logging
from typing import Dict, List, Optional, Tuple

from ..MODELS.compose_manifest import ContainerBackend, RestartPolicyCondition, ServiceSpec
from ..PARSERS.label_parser import TRAEFIK_PREFIX
from ..UTILS.nix_format import TEMPLATE_ENV

SYSTEMD_SERVICE_LABEL = "pod2nix.systemd.service."
SYSTEMD_UNIT_LABEL = "pod2nix.systemd.unit."
NATIVE_LOG_DRIVER = "journald"

logger = logging.getLogger(__name__)

RESTART_POLICIES = {
    RestartPolicyCondition.ALWAYS.value: "always",
    RestartPolicyCondition.UNLESS_STOPPED.value: "always",
    RestartPolicyCondition.ON_FAILURE.value: "on-failure",
    RestartPolicyCondition.NO.value: None,
}

CONTAINER_TEMPLATE = TEMPLATE_ENV.from_string("""\
  virtualisation.oci-containers.containers.{{ name | nix_str }} = {
{% if image %}
    image = {{ image | nix_str }};
{% endif %}
{% if environment is not none %}
    environment = {
{% for key, value in environment.items() %}
      {{ key | nix_str }} = {{ value | nix_str }};
{% endfor %}
    };
{% endif %}
{% if environment_files %}
    environmentFiles = [
{% for path in environment_files %}
      {{ path | nix_str }}
{% endfor %}
    ];
{% endif %}
{% if volumes %}
    volumes = [
{% for volume in volumes %}
      {{ volume | nix_str }}
{% endfor %}
    ];
{% endif %}
{% if ports %}
    ports = [
{% for port in ports %}
      {{ port | nix_str }}
{% endfor %}
    ];
{% endif %}
{% if entrypoint %}
    entrypoint = {{ entrypoint | nix_str }};
{% endif %}
{% if cmd %}
    cmd = [ {{ cmd | map("nix_str") | join(" ") }} ];
{% endif %}
{% if workdir %}
    workdir = {{ workdir | nix_str }};
{% endif %}
{% if user %}
    user = {{ user | nix_str }};
{% endif %}
{% if labels %}
    labels = {
{% for key, value in labels.items() %}
      {{ key | nix_str }} = {{ value | nix_str }};
{% endfor %}
    };
{% endif %}
{% if depends_on %}
    dependsOn = [
{% for dep in depends_on %}
      {{ dep | nix_str }}
{% endfor %}
    ];
{% endif %}
{% if log_driver %}
    log-driver = {{ log_driver | nix_str }};
{% endif %}
{% if extra_options %}
    extraOptions = [
{% for option in extra_options %}
      {{ option | nix_str }}
{% endfor %}
    ];
{% endif %}
  };""")

OVERRIDE_TEMPLATE = TEMPLATE_ENV.from_string("""\
  systemd.services.{{ unit | nix_str }} = {
{% if service_config %}
    serviceConfig = {
{% for key, value in service_config.items() %}
      {{ key | nix_attr }} = lib.mkOverride 90 {{ value | nix_str }};
{% endfor %}
    };
{% endif %}
{% if unit_config %}
    unitConfig = {
{% for key, value in unit_config.items() %}
      {{ key | nix_attr }} = lib.mkOverride 90 {{ value | nix_str }};
{% endfor %}
    };
{% endif %}
  };""")


def map_restart_policy(restart: str) -> Optional[str]:
    """
    Maps a Compose restart policy to a systemd ``Restart=`` value.

    ``no`` maps to ``None``; unrecognized policies fall back to ``on-failure``.
    """
    return RESTART_POLICIES.get(restart, "on-failure")


def resolve_volume(volume: str, project_name: str) -> str:
    """
    Keeps mounts with a ``:`` as they are and namespaces bare volume names per project.
    """
    if ":" in volume:
        return volume
    return f"{project_name}_{volume}:{volume}:rw"


def generate_extra_options(service: ServiceSpec) -> List[str]:
    """
    Builds the extra docker/podman command line options for a service.

    :param service: The service definition.
    :return: Options in a fixed order: privileged, capabilities, devices, DNS,
        sysctls, extra hosts, resource limits, health command.
    """
    options = []

    if service.privileged:
        options.append("--privileged")

    options.extend(f"--cap-add={cap}" for cap in service.cap_add or [])
    options.extend(f"--cap-drop={cap}" for cap in service.cap_drop or [])
    options.extend(f"--device={device}" for device in service.devices or [])
    options.extend(f"--dns={dns}" for dns in service.dns or [])
    options.extend(f"--sysctl={key}={value}" for key, value in (service.sysctls or {}).items())
    options.extend(f"--add-host={host}" for host in service.extra_hosts or [])

    limits = service.resource_limits
    if limits:
        if limits.cpus:
            options.append(f"--cpus={limits.cpus}")
        if limits.memory:
            options.append(f"--memory={limits.memory}")

    if service.healthcheck and service.healthcheck.test:
        options.append(f"--health-cmd={service.healthcheck.test}")

    return options


def _labels_with_prefix(labels: Dict[str, str], prefix: str) -> Dict[str, str]:
    return {key[len(prefix):]: value for key, value in labels.items() if key.startswith(prefix) and len(key) > len(prefix)}


class ContainerConverter:
    """
    Converts a single Compose service into NixOS declarations.
    """

    def __init__(
        self,
        name: str,
        service: ServiceSpec,
        project_name: str,
        backend: ContainerBackend = ContainerBackend.DOCKER,
    ):
        """
        Initializes the converter.

        :param name: The Compose service name, used as the container name.
        :param service: The normalized service definition.
        :param project_name: Prefix for anonymous volumes.
        :param backend: The runtime whose systemd units are overridden.
        """
        self.name = name
        self.service = service
        self.project_name = project_name
        self.backend = ContainerBackend(backend)

    def convert(self) -> Tuple[str, Optional[str]]:
        """
        Converts the service.

        :return: The container block and the systemd override block, or ``None``
            when the service needs no override.
        """
        return self.generate_container_config(), self.generate_systemd_override()

    def generate_container_config(self) -> str:
        svc = self.service

        entrypoint = None
        if svc.entrypoint:
            # oci-containers takes a single entrypoint executable
            entrypoint = svc.entrypoint[0]
            if len(svc.entrypoint) > 1:
                logger.warning(
                    "Service %s: entrypoint arguments %s are not supported and were dropped",
                    self.name, svc.entrypoint[1:],
                )

        labels = {
            key: value
            for key, value in (svc.labels or {}).items()
            if not key.startswith(TRAEFIK_PREFIX)
        }

        log_driver = svc.logging.driver if svc.logging else None
        if log_driver == "json-file":
            log_driver = NATIVE_LOG_DRIVER

        return CONTAINER_TEMPLATE.render(
            name=self.name,
            image=svc.image,
            environment=svc.environment,
            environment_files=svc.env_file,
            volumes=[resolve_volume(v, self.project_name) for v in svc.volumes or []],
            ports=svc.ports,
            entrypoint=entrypoint,
            cmd=svc.command,
            workdir=svc.working_dir,
            user=svc.user,
            labels=labels,
            depends_on=svc.depends_on,
            log_driver=log_driver,
            extra_options=generate_extra_options(svc),
        )

    def generate_systemd_override(self) -> Optional[str]:
        """
        Builds the override for the runtime's ``<backend>-<service>`` unit.

        :return: The override block, or ``None`` when no restart policy or
            ``pod2nix.systemd.*`` label applies.
        """
        labels = self.service.labels or {}
        service_config: Dict[str, str] = {}

        if self.service.restart:
            policy = map_restart_policy(self.service.restart)
            if policy:
                service_config["Restart"] = policy

        # Labels come after the restart policy so an explicit Restart label wins
        service_config.update(_labels_with_prefix(labels, SYSTEMD_SERVICE_LABEL))
        unit_config = _labels_with_prefix(labels, SYSTEMD_UNIT_LABEL)

        if not service_config and not unit_config:
            return None

        return OVERRIDE_TEMPLATE.render(
            unit=f"{self.backend.value}-{self.name}",
            service_config=service_config,
            unit_config=unit_config,
        )
