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
Models for Docker Compose manifests, normalized for conversion.

Compose allows several shapes for many fields. Each field is normalized once,
before validation, and a value of an unexpected shape is treated as absent.
"""
from typing import List, Dict, Optional, Any
from enum import Enum
from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..UTILS.value_coercion import (
    normalize_command,
    normalize_list,
    normalize_mapping,
    normalize_names,
    scalar_or_none,
    stringify,
)

DEFAULT_PROJECT_NAME = "myproject"


class ContainerBackend(str, Enum):
    """
    Container runtimes a generated module can target.
    """
    DOCKER = "docker"
    PODMAN = "podman"


class RestartPolicyCondition(str, Enum):
    """
    Compose restart policies with a known systemd counterpart.
    """
    NO = "no"
    ALWAYS = "always"
    ON_FAILURE = "on-failure"
    UNLESS_STOPPED = "unless-stopped"


def _mapping_or_none(value: Any) -> Optional[Dict[str, Any]]:
    return value if isinstance(value, dict) else None


class ComposeModel(BaseModel):
    """
    Base for manifest models: unknown keys are kept, never rejected.
    """
    model_config = ConfigDict(extra="allow")


class LoggingConfig(ComposeModel):
    driver: Optional[str] = None

    @field_validator("driver", mode="before")
    @classmethod
    def _scalar(cls, value: Any) -> Optional[str]:
        return scalar_or_none(value)


class HealthCheck(ComposeModel):
    """
    Health check of a service. Only the test command is used for conversion.
    """
    test: Optional[str] = None

    @field_validator("test", mode="before")
    @classmethod
    def _command_line(cls, value: Any) -> Optional[str]:
        if isinstance(value, list):
            return " ".join(normalize_list(value) or [])
        return scalar_or_none(value)


class ResourceLimits(ComposeModel):
    cpus: Optional[str] = None
    memory: Optional[str] = None

    @field_validator("cpus", "memory", mode="before")
    @classmethod
    def _scalar(cls, value: Any) -> Optional[str]:
        return scalar_or_none(value)


class Resources(ComposeModel):
    limits: Optional[ResourceLimits] = None

    @field_validator("limits", mode="before")
    @classmethod
    def _mapping(cls, value: Any) -> Optional[Dict[str, Any]]:
        return _mapping_or_none(value)


class DeployConfig(ComposeModel):
    resources: Optional[Resources] = None

    @field_validator("resources", mode="before")
    @classmethod
    def _mapping(cls, value: Any) -> Optional[Dict[str, Any]]:
        return _mapping_or_none(value)


class ServiceSpec(ComposeModel):
    """
    A single Compose service, with every supported field in canonical form.
    """
    image: Optional[str] = None
    working_dir: Optional[str] = None
    user: Optional[str] = None
    restart: Optional[str] = None

    # Execution
    command: Optional[List[str]] = None
    entrypoint: Optional[List[str]] = None

    # Environment
    environment: Optional[Dict[str, str]] = None
    env_file: Optional[List[str]] = None

    # Networking and storage
    ports: Optional[List[str]] = None
    volumes: Optional[List[str]] = None
    networks: Optional[List[str]] = None

    # Lifecycle
    depends_on: Optional[List[str]] = None
    healthcheck: Optional[HealthCheck] = None

    # Runtime options
    privileged: bool = False
    cap_add: Optional[List[str]] = None
    cap_drop: Optional[List[str]] = None
    devices: Optional[List[str]] = None
    dns: Optional[List[str]] = None
    extra_hosts: Optional[List[str]] = None
    sysctls: Optional[Dict[str, str]] = None
    logging: Optional[LoggingConfig] = None
    deploy: Optional[DeployConfig] = None

    # Metadata
    labels: Optional[Dict[str, str]] = None

    @field_validator("image", "working_dir", "user", "restart", mode="before")
    @classmethod
    def _scalar(cls, value: Any) -> Optional[str]:
        return scalar_or_none(value)

    @field_validator("environment", "labels", "sysctls", mode="before")
    @classmethod
    def _key_values(cls, value: Any) -> Optional[Dict[str, str]]:
        return normalize_mapping(value)

    @field_validator("command", "entrypoint", mode="before")
    @classmethod
    def _command(cls, value: Any) -> Optional[List[str]]:
        return normalize_command(value)

    @field_validator("depends_on", "networks", mode="before")
    @classmethod
    def _names(cls, value: Any) -> Optional[List[str]]:
        return normalize_names(value)

    @field_validator("env_file", "cap_add", "cap_drop", "devices", "dns", "extra_hosts", mode="before")
    @classmethod
    def _list(cls, value: Any) -> Optional[List[str]]:
        return normalize_list(value)

    @field_validator("ports", mode="before")
    @classmethod
    def _ports(cls, value: Any) -> Optional[List[str]]:
        """
        Keeps short-form ports verbatim and renders long-form entries as
        ``[host_ip:]published:target[/protocol]``.
        """
        if not isinstance(value, list):
            return None
        ports = []
        for p in value:
            if isinstance(p, dict):
                if p.get('target') is None:
                    continue
                port = stringify(p['target'])
                if p.get('published') is not None:
                    port = f"{stringify(p['published'])}:{port}"
                    if p.get('host_ip'):
                        port = f"{stringify(p['host_ip'])}:{port}"
                if p.get('protocol'):
                    port = f"{port}/{stringify(p['protocol'])}"
                ports.append(port)
            elif p is not None and not isinstance(p, list):
                ports.append(stringify(p))
        return ports

    @field_validator("volumes", mode="before")
    @classmethod
    def _volumes(cls, value: Any) -> Optional[List[str]]:
        """
        Keeps short-form mounts verbatim and renders long-form entries as
        ``source:target[:ro]``. Long-form mounts without a source are skipped.
        """
        if not isinstance(value, list):
            return None
        volumes = []
        for v in value:
            if isinstance(v, dict):
                if not v.get('source') or not v.get('target'):
                    continue
                mount = f"{stringify(v['source'])}:{stringify(v['target'])}"
                if v.get('read_only'):
                    mount = f"{mount}:ro"
                volumes.append(mount)
            elif v is not None and not isinstance(v, list):
                volumes.append(stringify(v))
        return volumes

    @field_validator("privileged", mode="before")
    @classmethod
    def _flag(cls, value: Any) -> bool:
        return value is True or stringify(value).lower() == "true"

    @field_validator("healthcheck", "logging", "deploy", mode="before")
    @classmethod
    def _mapping(cls, value: Any) -> Optional[Dict[str, Any]]:
        return _mapping_or_none(value)

    @property
    def resource_limits(self) -> Optional[ResourceLimits]:
        if self.deploy and self.deploy.resources:
            return self.deploy.resources.limits
        return None


class ComposeManifest(ComposeModel):
    """
    A parsed docker-compose.yml file.
    """
    services: Dict[str, ServiceSpec]
    volumes: List[str] = Field(default_factory=list)
    networks: List[str] = Field(default_factory=list)
    name: Optional[str] = None

    @field_validator("services", mode="before")
    @classmethod
    def _services(cls, value: Any) -> Dict[str, Any]:
        if not isinstance(value, dict):
            return {}
        return {stringify(name): spec if isinstance(spec, dict) else {} for name, spec in value.items()}

    @field_validator("volumes", "networks", mode="before")
    @classmethod
    def _declared_names(cls, value: Any) -> List[str]:
        return normalize_names(value) or []

    @field_validator("name", mode="before")
    @classmethod
    def _name(cls, value: Any) -> Optional[str]:
        return scalar_or_none(value)

    @property
    def project_name(self) -> str:
        return self.name or DEFAULT_PROJECT_NAME
