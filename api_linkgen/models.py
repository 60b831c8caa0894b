"""Data models for api-linkgen.

All models use Pydantic v2. Internal pipeline records that must keep object
identity (parameter correspondences) live as dataclasses in the modules that
produce them.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Self

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


DEFAULT_LINK_DESCRIPTION = "Automatically generated link definition"


class HttpMethod(str, Enum):
    """Target methods a generated link can point at.

    Declaration order is the emission order for a target path.
    """

    GET = "get"
    POST = "post"
    DELETE = "delete"


# =============================================================================
# Link Models
# =============================================================================


class LinkObject(BaseModel):
    """An OpenAPI Link Object produced by the synthesizer.

    Exactly one of operationId / operationRef identifies the target operation.
    Parameter values are runtime expressions of the form $request.<in>.<name>.
    """

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    description: str = Field(description="Marker text for generated links")
    operation_id: str | None = Field(
        default=None, alias="operationId", description="Target operationId"
    )
    operation_ref: str | None = Field(
        default=None, alias="operationRef", description="JSON pointer fallback, e.g. #/paths/~1items/get"
    )
    parameters: dict[str, str] = Field(
        default_factory=dict, description="Target parameter name -> runtime expression"
    )

    @model_validator(mode="after")
    def check_target_exclusivity(self) -> Self:
        if (self.operation_id is None) == (self.operation_ref is None):
            raise ValueError("exactly one of operationId and operationRef must be set")
        return self

    def to_openapi(self) -> dict[str, Any]:
        """Dump as a plain Link Object dict, keys in OpenAPI spelling."""
        return self.model_dump(by_alias=True, exclude_none=True)


class AddedLink(BaseModel):
    """One link entry inserted into a response's links map."""

    model_config = ConfigDict(extra="forbid")

    name: str = Field(description="Key under the response's links map")
    from_path: str = Field(description="Path whose GET response received the link")
    to_path: str = Field(description="Path of the target operation")
    method: HttpMethod = Field(description="Target operation method")
    status_code: str = Field(description="Response key the link was added to")
    component: str | None = Field(
        default=None, description="components.links name when inserted as a $ref"
    )


# =============================================================================
# Configuration Models
# =============================================================================


class GeneratorConfig(BaseModel):
    """Top-level generator configuration file structure."""

    model_config = ConfigDict(extra="forbid")

    description: str = Field(
        default=DEFAULT_LINK_DESCRIPTION, description="Description of every generated link"
    )
    target_methods: list[HttpMethod] = Field(
        default_factory=lambda: list(HttpMethod),
        description="Target methods that may receive links",
    )

    @field_validator("target_methods")
    @classmethod
    def validate_target_methods(cls, v: list[HttpMethod]) -> list[HttpMethod]:
        if not v:
            raise ValueError("target_methods must not be empty")
        if len(set(v)) != len(v):
            raise ValueError("target_methods must not contain duplicates")
        return v
