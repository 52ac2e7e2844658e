import pytest
from click.testing import CliRunner
from pod2nix.CLI.main import cli
import yaml

COMPOSE = """
name: blog
services:
  web:
    image: ghost:${GHOST_VERSION:-5}
    restart: always
    volumes:
      - content:/var/lib/ghost/content
    labels:
      - traefik.http.routers.blog.rule=Host(`blog.example.com`)
      - traefik.http.services.blog.loadbalancer.server.port=2368
volumes:
  content:
"""

@pytest.fixture
def compose_file(tmp_path):
    path = tmp_path / "docker-compose.yml"
    path.write_text(COMPOSE)
    return path

def test_cli_help():
    runner = CliRunner()
    result = runner.invoke(cli, ['--help'])
    assert result.exit_code == 0
    assert 'Docker Compose to NixOS' in result.output

def test_cli_convert_help():
    runner = CliRunner()
    result = runner.invoke(cli, ['convert', '--help'])
    assert result.exit_code == 0
    assert '--backend' in result.output
    assert '--routes' in result.output

def test_cli_convert_no_file():
    runner = CliRunner()
    result = runner.invoke(cli, ['-f', 'non_existent.yml', 'convert'])
    assert result.exit_code != 0
    assert 'Error: non_existent.yml not found.' in result.output

def test_cli_convert_stdout(compose_file):
    runner = CliRunner()
    result = runner.invoke(cli, ['-f', str(compose_file), 'convert', '-b', 'podman'])
    assert result.exit_code == 0
    assert 'virtualisation.podman = {' in result.output
    assert 'systemd.services."podman-web"' in result.output
    assert 'systemd.services."podman-volume-content"' in result.output
    assert 'url = "http://web:2368";' in result.output

def test_cli_convert_to_file(compose_file, tmp_path):
    out = tmp_path / "containers.nix"
    runner = CliRunner()
    result = runner.invoke(cli, ['-f', str(compose_file), 'convert', '-o', str(out)])
    assert result.exit_code == 0
    assert f"NixOS module written to {out}" in result.output
    assert 'containers."web"' in out.read_text()

def test_cli_env_file(compose_file, tmp_path):
    env_file = tmp_path / ".env"
    env_file.write_text("GHOST_VERSION=5.80\n")
    runner = CliRunner()
    result = runner.invoke(cli, ['-f', str(compose_file), '--env-file', str(env_file), 'convert'])
    assert result.exit_code == 0
    assert 'image = "ghost:5.80";' in result.output

def test_cli_routes_file(compose_file, tmp_path):
    routes = tmp_path / "routes.yml"
    with open(routes, 'w') as f:
        yaml.dump([{'name': 'grafana', 'url': 'http://127.0.0.1:3000', 'host': 'grafana.example.com'}], f)
    runner = CliRunner()
    result = runner.invoke(cli, ['-f', str(compose_file), 'convert', '--routes', str(routes)])
    assert result.exit_code == 0
    assert result.output.index('grafana.loadBalancer') < result.output.index('blog.loadBalancer')

def test_cli_invalid_routes_file(compose_file, tmp_path):
    routes = tmp_path / "routes.yml"
    routes.write_text("- name: grafana\n  url: not-a-url\n")
    runner = CliRunner()
    result = runner.invoke(cli, ['-f', str(compose_file), 'convert', '--routes', str(routes)])
    assert result.exit_code != 0
    assert 'Invalid route #1' in result.output

def test_cli_convert_without_services(tmp_path):
    path = tmp_path / "docker-compose.yml"
    path.write_text("version: '3.8'\n")
    runner = CliRunner()
    result = runner.invoke(cli, ['-f', str(path), 'convert'])
    assert result.exit_code != 0
    assert 'No services found' in result.output

def test_cli_inspect(compose_file):
    runner = CliRunner()
    result = runner.invoke(cli, ['-f', str(compose_file), 'inspect'])
    assert result.exit_code == 0
    assert 'Project: blog' in result.output
    assert 'web' in result.output
    assert 'Volumes: content' in result.output
    assert 'Networks: -' in result.output
    assert 'blog: blog.example.com -> http://web:2368 (web)' in result.output
