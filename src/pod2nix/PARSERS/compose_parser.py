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
Parsers for Docker Compose YAML files.
"""
import logging
import yaml
from typing import Dict, Optional
from pydantic import ValidationError

from ..EXCEPTIONS.conversion_errors import ManifestParseError, ManifestValidationError
from ..MODELS.compose_manifest import ComposeManifest
from ..UTILS.string_interpolation import EnvironmentInterpolator
from ..UTILS.yaml_loader import load_yaml

logger = logging.getLogger(__name__)

NO_SERVICES_MESSAGE = "No services found in Docker Compose file"


class ComposeParser:
    """
    Parser for docker-compose.yml files.
    """
    def __init__(self, context: Optional[Dict[str, Optional[str]]] = None):
        """
        Initializes the parser with an optional interpolation context.

        :param context: Variables for ${VAR} interpolation. When omitted the
            manifest text is parsed exactly as given.
        """
        self.context = context

    def parse(self, compose_path: str) -> ComposeManifest:
        """
        Parses a compose file from a path.

        :param compose_path: Path to the compose file.
        :return: Parsed manifest.
        """
        with open(compose_path, 'r') as f:
            content = f.read()
        return self.parse_from_string(content)

    def parse_from_string(self, content: str) -> ComposeManifest:
        """
        Parses a compose file from a string.

        :param content: YAML content of the compose file.
        :return: Parsed manifest.
        :raises ManifestParseError: If the content is not valid YAML.
        :raises ManifestValidationError: If the document has no services mapping.
        """
        if self.context is not None:
            content = EnvironmentInterpolator.interpolate(content, self.context)

        try:
            data = load_yaml(content)
        except (yaml.YAMLError, ValueError) as e:
            raise ManifestParseError(str(e)) from e

        if not isinstance(data, dict) or not isinstance(data.get('services'), dict):
            raise ManifestValidationError(NO_SERVICES_MESSAGE)

        try:
            manifest = ComposeManifest.model_validate(data)
        except ValidationError as e:
            raise ManifestValidationError(str(e)) from e

        logger.debug("Parsed manifest with %d services", len(manifest.services))
        return manifest
