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
Helpers that coerce loosely typed YAML values into strings, lists and mappings.

Compose accepts several shapes for the same field. Every helper here returns
``None`` for a shape it does not understand so callers can treat it as absent.
"""
from typing import Any, Dict, List, Optional


def stringify(value: Any) -> str:
    """
    Converts a YAML scalar to the string Compose would pass to the container.

    :param value: A scalar loaded by PyYAML.
    :return: ``"true"``/``"false"`` for booleans, ``""`` for null, otherwise ``str(value)``.
    """
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def is_scalar(value: Any) -> bool:
    return not isinstance(value, (dict, list, tuple, set))


def scalar_or_none(value: Any) -> Optional[str]:
    if value is None or not is_scalar(value):
        return None
    return stringify(value)


def parse_key_value_list(entries: List[Any]) -> Dict[str, str]:
    """
    Parses ``KEY=VALUE`` entries into a mapping.

    The key is everything before the first ``=``; the rest is kept verbatim as
    the value. Entries without ``=`` map to an empty string. Later duplicates
    overwrite earlier ones.

    :param entries: The list form of an environment or label field.
    :return: An insertion-ordered mapping.
    """
    result: Dict[str, str] = {}
    for entry in entries:
        if not is_scalar(entry) or entry is None:
            continue
        key, _, value = stringify(entry).partition("=")
        result[key] = value
    return result


def normalize_mapping(value: Any) -> Optional[Dict[str, str]]:
    """
    Normalizes the list or mapping form of a field into one mapping.

    :param value: A list of ``KEY=VALUE`` strings or a mapping.
    :return: A mapping of strings, or ``None`` when the field is absent or malformed.
    """
    if isinstance(value, list):
        return parse_key_value_list(value)
    if isinstance(value, dict):
        return {stringify(k): stringify(v) for k, v in value.items() if is_scalar(v)}
    return None


def normalize_list(value: Any) -> Optional[List[str]]:
    """
    Normalizes a list field, accepting a lone scalar as a one-element list.

    :param value: A list or a scalar.
    :return: A list of strings, or ``None`` when absent or malformed.
    """
    if value is None:
        return None
    if isinstance(value, list):
        return [stringify(item) for item in value if is_scalar(item) and item is not None]
    if is_scalar(value):
        return [stringify(value)]
    return None


def normalize_names(value: Any) -> Optional[List[str]]:
    """
    Normalizes a field that is either a list of names or a mapping keyed by name.

    Used for ``depends_on`` and ``networks``; mapping order is preserved.
    """
    if isinstance(value, dict):
        return [stringify(key) for key in value.keys()]
    if isinstance(value, list):
        return normalize_list(value)
    return None


def normalize_command(value: Any) -> Optional[List[str]]:
    """
    Normalizes ``command``/``entrypoint``: strings are split on whitespace.
    """
    if isinstance(value, str):
        return value.split()
    if isinstance(value, list):
        return normalize_list(value)
    return None
