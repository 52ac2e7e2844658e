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
Command Line Interface for pod2nix.
"""
import logging
import os
from typing import Dict, List, Optional

import click
import yaml
from dotenv import dotenv_values
from pydantic import ValidationError

from ..CONVERTERS.to_nix import convert_compose_to_nix
from ..EXCEPTIONS.conversion_errors import ConversionError
from ..MODELS.compose_manifest import ContainerBackend
from ..MODELS.routing_rule import RoutingRule
from ..PARSERS.compose_parser import ComposeParser
from ..PARSERS.label_parser import parse_traefik_labels
from ..PARSERS.resource_extractor import extract_networks, extract_volumes
from ..UTILS.yaml_loader import load_yaml


@click.group()
@click.option('--file', '-f', default='docker-compose.yml', help='Compose file path')
@click.option('--env-file', type=click.Path(exists=True, dir_okay=False), default=None,
              help='Dotenv file with variables for ${VAR} interpolation')
@click.option('--verbose', '-v', is_flag=True, help='Enable debug logging')
@click.pass_context
def cli(ctx, file, env_file, verbose):
    """
    pod2nix - Docker Compose to NixOS converter.

    Generates a NixOS module with OCI containers, systemd units and Traefik routes.
    """
    ctx.ensure_object(dict)
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="[%(levelname)s] %(name)s: %(message)s",
    )
    ctx.obj['file'] = file
    ctx.obj['context'] = _load_context(env_file)


def _load_context(env_file: Optional[str]) -> Optional[Dict[str, str]]:
    """
    Builds the interpolation context from a dotenv file.

    Variables without a value resolve to an empty string.
    """
    if not env_file:
        return None
    return {key: value or '' for key, value in dotenv_values(env_file).items()}


def _read_manifest(ctx) -> str:
    path = ctx.obj['file']
    if not os.path.exists(path):
        raise click.ClickException(f"{path} not found.")
    with open(path, 'r') as f:
        return f.read()


def _load_routing_rules(path: str) -> List[RoutingRule]:
    """
    Loads extra routing rules from a YAML or JSON list of mappings.
    """
    with open(path, 'r') as f:
        try:
            data = load_yaml(f)
        except yaml.YAMLError as e:
            raise click.ClickException(f"Invalid routing file {path}: {e}")

    if data is None:
        return []
    if not isinstance(data, list):
        raise click.ClickException(f"Invalid routing file {path}: expected a list of routes")

    rules = []
    for index, entry in enumerate(data, start=1):
        try:
            rules.append(RoutingRule.model_validate(entry))
        except ValidationError as e:
            raise click.ClickException(f"Invalid route #{index} in {path}: {e}")
    return rules


@cli.command()
@click.option('--backend', '-b', type=click.Choice([b.value for b in ContainerBackend]),
              default=ContainerBackend.DOCKER.value, help='Container runtime')
@click.option('--routes', '-r', type=click.Path(exists=True, dir_okay=False), default=None,
              help='YAML file with extra Traefik routes')
@click.option('--out', '-o', default='-', help='Output file, "-" for stdout')
@click.pass_context
def convert(ctx, backend, routes, out):
    """Convert the compose file to a NixOS module."""
    content = _read_manifest(ctx)
    rules = _load_routing_rules(routes) if routes else []

    try:
        result = convert_compose_to_nix(content, backend, rules, context=ctx.obj['context'])
    except ConversionError as e:
        raise click.ClickException(str(e))

    if out == '-':
        click.echo(result, nl=False)
    else:
        with open(out, 'w') as f:
            f.write(result)
        click.echo(f"NixOS module written to {out}")


@cli.command()
@click.pass_context
def inspect(ctx):
    """List services, volumes, networks and Traefik routes."""
    content = _read_manifest(ctx)
    try:
        manifest = ComposeParser(ctx.obj['context']).parse_from_string(content)
    except ConversionError as e:
        raise click.ClickException(str(e))

    click.echo(f"Project: {manifest.project_name}")
    click.echo(f"{'SERVICE':20} {'IMAGE':30}")
    click.echo("-" * 51)
    for name, service in manifest.services.items():
        click.echo(f"{name:20} {service.image or '-':30}")

    click.echo(f"Volumes: {', '.join(extract_volumes(manifest)) or '-'}")
    click.echo(f"Networks: {', '.join(extract_networks(manifest)) or '-'}")

    routes = [
        rule
        for name, service in manifest.services.items()
        for rule in parse_traefik_labels(service.labels, name)
    ]
    click.echo("Routes:" if routes else "Routes: -")
    for rule in routes:
        click.echo(f"  {rule.name}: {rule.host} -> {rule.url} ({rule.entrypoint})")


def main():
    """
    Main entry point for the CLI.
    """
    cli(obj={})


if __name__ == '__main__':
    main()
