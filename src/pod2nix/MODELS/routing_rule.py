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
Model for Traefik routing rules, supplied explicitly or derived from service labels.
"""
from typing import Any, Optional
from pydantic import AnyUrl, BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, field_validator

DEFAULT_ENTRYPOINT = "web"

_URL_ADAPTER = TypeAdapter(AnyUrl)


class RoutingRule(BaseModel):
    """
    A named host route: a Traefik router plus the load-balanced server behind it.

    ``url`` and ``host`` may be missing on explicitly supplied rules; such a rule
    only contributes the half of the routing block it has data for.
    """
    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(min_length=1)
    url: Optional[str] = None
    host: Optional[str] = Field(default=None, min_length=1)
    entrypoint: str = Field(default=DEFAULT_ENTRYPOINT, min_length=1)
    cert_resolver: Optional[str] = Field(default=None, alias="certResolver")
    enable_tls: bool = Field(default=False, alias="enableTLS")

    @field_validator("url")
    @classmethod
    def _absolute_url(cls, value: Optional[str]) -> Optional[str]:
        # Validated as a URL but kept verbatim; AnyUrl would append a trailing slash.
        if value is None:
            return value
        try:
            _URL_ADAPTER.validate_python(value)
        except ValidationError:
            raise ValueError(f"Invalid URL: {value}")
        return value

    @field_validator("entrypoint", mode="before")
    @classmethod
    def _default_entrypoint(cls, value: Any) -> Any:
        return value or DEFAULT_ENTRYPOINT

    @property
    def is_complete(self) -> bool:
        return bool(self.name and self.url and self.host)
