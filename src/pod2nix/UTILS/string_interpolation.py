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
Utilities for Compose-style variable interpolation.
"""
import logging
import re
from typing import Dict, Optional

logger = logging.getLogger(__name__)


class EnvironmentInterpolator:
    """
    Utility for interpolating environment variables in manifest text.
    Supports ${VAR}, ${VAR:-default}, ${VAR:+value} and the $$ escape.
    """
    # Group 1: VAR name
    # Group 2: - or +
    # Group 3: default or value
    PATTERN = re.compile(r'\$\$|\$\{([^}:]+)(?::(-|\+)([^}]*))?\}')

    @staticmethod
    def interpolate(template: str, context: Dict[str, Optional[str]]) -> str:
        """
        Interpolates variables in the template string using the provided context.

        An unset ${VAR} resolves to an empty string, as Compose does, and is logged.

        :param template: The string containing ${VAR} placeholders.
        :param context: The variables available for substitution.
        :return: The interpolated string.
        """
        def replace(match):
            """
            Internal replacement function for re.sub.
            """
            if match.group(0) == '$$':
                return '$'

            var_name = match.group(1)
            modifier = match.group(2)  # None, '-', or '+'
            alt_value = match.group(3)

            value = context.get(var_name)

            if modifier == '-':
                # ${VAR:-default} -> use default if VAR is unset or empty
                return value if value else alt_value
            elif modifier == '+':
                # ${VAR:+value} -> use alt_value if VAR is set and not empty, else empty
                return alt_value if value else ''
            if value is None:
                logger.warning("Variable %s is not set, substituting an empty string", var_name)
                return ''
            return value

        return EnvironmentInterpolator.PATTERN.sub(replace, template)
