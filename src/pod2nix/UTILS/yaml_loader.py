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
YAML loading with the YAML 1.2 core schema.

PyYAML resolves plain scalars with YAML 1.1 rules, where ``53:53`` is a
base-60 integer, ``0755`` is octal, ``yes``/``off`` are booleans and
``2024-01-01`` is a date. Compose files are written against YAML 1.2, so
those scalars must stay strings.
"""
import re

import yaml

BOOL_TAG = "tag:yaml.org,2002:bool"
INT_TAG = "tag:yaml.org,2002:int"
FLOAT_TAG = "tag:yaml.org,2002:float"

# Implicit types dropped from the YAML 1.1 resolver table and re-added below
_REPLACED_TAGS = {
    BOOL_TAG,
    INT_TAG,
    FLOAT_TAG,
    "tag:yaml.org,2002:timestamp",
    "tag:yaml.org,2002:value",
}


class CoreSchemaLoader(yaml.SafeLoader):
    """
    A ``SafeLoader`` whose implicit resolvers follow the YAML 1.2 core schema.
    """


CoreSchemaLoader.yaml_implicit_resolvers = {
    first: [(tag, regexp) for tag, regexp in resolvers if tag not in _REPLACED_TAGS]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}

CoreSchemaLoader.add_implicit_resolver(
    BOOL_TAG,
    re.compile(r"^(?:true|True|TRUE|false|False|FALSE)$"),
    list("tTfF"),
)
CoreSchemaLoader.add_implicit_resolver(
    INT_TAG,
    re.compile(r"^(?:[-+]?[0-9]+|0o[0-7]+|0x[0-9a-fA-F]+)$"),
    list("-+0123456789"),
)
CoreSchemaLoader.add_implicit_resolver(
    FLOAT_TAG,
    re.compile(
        r"^(?:[-+]?(?:\.[0-9]+|[0-9]+(?:\.[0-9]*)?)(?:[eE][-+]?[0-9]+)?"
        r"|[-+]?\.(?:inf|Inf|INF)"
        r"|\.(?:nan|NaN|NAN))$"
    ),
    list("-+0123456789."),
)


def _construct_int(loader: CoreSchemaLoader, node: yaml.ScalarNode) -> int:
    value = loader.construct_scalar(node)
    if value.startswith("0o"):
        return int(value[2:], 8)
    if value.startswith("0x"):
        return int(value[2:], 16)
    # Leading zeros are decimal in YAML 1.2
    return int(value, 10)


CoreSchemaLoader.add_constructor(INT_TAG, _construct_int)


def load_yaml(stream):
    """
    Loads a single YAML document with the core schema.

    :param stream: YAML text or an open file.
    :return: The loaded Python object.
    :raises yaml.YAMLError: If the document is malformed.
    """
    return yaml.load(stream, Loader=CoreSchemaLoader)
