"""
Unit tests for the per-service container and systemd override conversion.
"""
import pytest
from pod2nix.CONVERTERS.to_container import (
    ContainerConverter,
    generate_extra_options,
    map_restart_policy,
    resolve_volume,
)
from pod2nix.MODELS.compose_manifest import ContainerBackend, ServiceSpec


def container_config(spec, name="web", project="test"):
    service = ServiceSpec.model_validate(spec)
    return ContainerConverter(name, service, project).generate_container_config()


def systemd_override(spec, name="web", backend=ContainerBackend.DOCKER):
    service = ServiceSpec.model_validate(spec)
    return ContainerConverter(name, service, "test", backend).generate_systemd_override()


class TestContainerConfig:
    """Tests for the oci-containers block."""

    def test_basic_properties(self):
        result = container_config({
            "image": "nginx",
            "ports": ["80:80"],
            "environment": {"KEY": "value"},
        })
        assert result.startswith('  virtualisation.oci-containers.containers."web" = {\n')
        assert 'image = "nginx"' in result
        assert 'ports = [\n      "80:80"\n    ]' in result
        assert 'environment = {\n      "KEY" = "value";\n    }' in result
        assert result.endswith("\n  };")

    def test_field_order(self):
        result = container_config({
            "user": "1000",
            "image": "app",
            "depends_on": ["db"],
            "environment": ["A=1"],
            "working_dir": "/srv",
        })
        positions = [result.index(marker) for marker in ("image =", "environment =", "workdir =", "user =", "dependsOn =")]
        assert positions == sorted(positions)

    def test_bind_mount_kept(self):
        result = container_config({"volumes": ["data:/var/data"]})
        assert 'volumes = [\n      "data:/var/data"\n    ]' in result

    def test_bare_volume_namespaced(self):
        result = container_config({"volumes": ["cache"]}, project="shop")
        assert '"shop_cache:cache:rw"' in result

    def test_command_as_array(self):
        result = container_config({"command": ["nginx", "-g", "daemon off;"]})
        assert 'cmd = [ "nginx" "-g" "daemon off;" ];' in result

    def test_command_as_string(self):
        result = container_config({"command": "npm run start"})
        assert 'cmd = [ "npm" "run" "start" ];' in result

    def test_entrypoint_leaves_command_unchanged(self, caplog):
        result = container_config({"entrypoint": ["sh", "-c"], "command": ["echo hi"]})
        assert 'entrypoint = "sh";' in result
        assert 'cmd = [ "echo hi" ];' in result
        assert "entrypoint arguments" in caplog.text

    def test_single_entrypoint(self):
        result = container_config({"entrypoint": "/docker-entrypoint.sh"})
        assert 'entrypoint = "/docker-entrypoint.sh";' in result
        assert "cmd" not in result

    def test_networks_are_not_options(self):
        result = container_config({"image": "app", "networks": ["backend"]})
        assert "--network" not in result
        assert "extraOptions" not in result

    def test_labels_exclude_traefik(self):
        result = container_config({
            "labels": {
                "custom.label": "value",
                "traefik.enable": "true",
            }
        })
        assert 'labels = {\n      "custom.label" = "value";\n    }' in result
        assert "traefik.enable" not in result

    def test_only_traefik_labels_omits_block(self):
        result = container_config({"labels": ["traefik.enable=true"]})
        assert "labels" not in result

    def test_depends_on_mapping(self):
        result = container_config({"depends_on": {"db": {"condition": "service_healthy"}, "cache": {}}})
        assert 'dependsOn = [\n      "db"\n      "cache"\n    ];' in result

    def test_log_driver_remapped(self):
        assert 'log-driver = "journald";' in container_config({"logging": {"driver": "json-file"}})
        assert 'log-driver = "syslog";' in container_config({"logging": {"driver": "syslog"}})

    def test_environment_files(self):
        result = container_config({"env_file": ".env"})
        assert 'environmentFiles = [\n      ".env"\n    ];' in result

    def test_values_are_escaped(self):
        result = container_config({"environment": {"MSG": 'say "hi" to ${USER}'}})
        assert '"MSG" = "say \\"hi\\" to \\${USER}";' in result

    def test_absent_fields_emit_nothing(self):
        result = container_config({})
        assert result == '  virtualisation.oci-containers.containers."web" = {\n  };'


class TestExtraOptions:
    """Tests for extraOptions generation."""

    def test_privileged(self):
        assert generate_extra_options(ServiceSpec(privileged=True)) == ["--privileged"]

    def test_capabilities(self):
        service = ServiceSpec.model_validate({"cap_add": ["NET_ADMIN"], "cap_drop": ["ALL"]})
        assert generate_extra_options(service) == ["--cap-add=NET_ADMIN", "--cap-drop=ALL"]

    def test_resource_limits(self):
        service = ServiceSpec.model_validate({
            "deploy": {"resources": {"limits": {"cpus": "1.5", "memory": "512m"}}}
        })
        assert generate_extra_options(service) == ["--cpus=1.5", "--memory=512m"]

    def test_healthcheck_array(self):
        service = ServiceSpec.model_validate({"healthcheck": {"test": ["CMD", "curl", "localhost"]}})
        assert generate_extra_options(service) == ["--health-cmd=CMD curl localhost"]

    def test_healthcheck_string(self):
        service = ServiceSpec.model_validate({"healthcheck": {"test": "curl -f localhost", "interval": "30s"}})
        assert generate_extra_options(service) == ["--health-cmd=curl -f localhost"]

    def test_full_order(self):
        service = ServiceSpec.model_validate({
            "healthcheck": {"test": "true"},
            "extra_hosts": ["host.docker.internal:host-gateway"],
            "sysctls": {"net.core.somaxconn": 1024},
            "dns": ["1.1.1.1"],
            "devices": ["/dev/fuse"],
            "cap_drop": ["MKNOD"],
            "cap_add": ["SYS_ADMIN"],
            "privileged": True,
            "deploy": {"resources": {"limits": {"memory": "1g"}}},
        })
        assert generate_extra_options(service) == [
            "--privileged",
            "--cap-add=SYS_ADMIN",
            "--cap-drop=MKNOD",
            "--device=/dev/fuse",
            "--dns=1.1.1.1",
            "--sysctl=net.core.somaxconn=1024",
            "--add-host=host.docker.internal:host-gateway",
            "--memory=1g",
            "--health-cmd=true",
        ]

    def test_no_options(self):
        assert generate_extra_options(ServiceSpec()) == []


class TestSystemdOverride:
    """Tests for systemd service overrides."""

    def test_restart_policy(self):
        result = systemd_override({"restart": "always"})
        assert 'systemd.services."docker-web" = {' in result
        assert 'Restart = lib.mkOverride 90 "always"' in result

    def test_systemd_labels(self):
        result = systemd_override({
            "labels": {
                "pod2nix.systemd.service.RestartSec": "5",
                "pod2nix.systemd.unit.After": "network.target",
            }
        })
        assert 'serviceConfig = {\n      RestartSec = lib.mkOverride 90 "5";\n    };' in result
        assert 'unitConfig = {\n      After = lib.mkOverride 90 "network.target";\n    };' in result

    def test_restart_label_overrides_policy(self):
        result = systemd_override({
            "restart": "always",
            "labels": ["pod2nix.systemd.service.Restart=on-abnormal"],
        })
        assert result.count("Restart =") == 1
        assert 'Restart = lib.mkOverride 90 "on-abnormal"' in result

    def test_podman_unit_name(self):
        result = systemd_override({"restart": "on-failure"}, name="db", backend=ContainerBackend.PODMAN)
        assert 'systemd.services."podman-db"' in result

    def test_no_config_needed(self):
        assert systemd_override({}) is None
        assert systemd_override({"restart": "no"}) is None


@pytest.mark.parametrize("policy, expected", [
    ("always", "always"),
    ("unless-stopped", "always"),
    ("on-failure", "on-failure"),
    ("no", None),
    ("unknown", "on-failure"),
])
def test_map_restart_policy(policy, expected):
    assert map_restart_policy(policy) == expected


def test_resolve_volume():
    assert resolve_volume("data:/app/data", "proj") == "data:/app/data"
    assert resolve_volume("cache", "proj") == "proj_cache:cache:rw"
