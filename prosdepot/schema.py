"""Pydantic models for template descriptors and the depot file."""

from __future__ import annotations

import json
from typing import Any, Dict, List, Literal, Sequence

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

BASE_TEMPLATE_TYPE = "pros.conductor.templates.base_template.BaseTemplate"
EXTERNAL_TEMPLATE_TYPE = "pros.conductor.templates.external_template.ExternalTemplate"


class DepotFormatError(ValueError):
    """Raised when depot JSON does not match the expected schema."""


class TemplateMetadata(BaseModel):
    """Location metadata attached to each depot entry."""

    location: str


class BaseTemplate(BaseModel):
    """A single depot entry, as consumed by the PROS CLI."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    metadata: TemplateMetadata
    name: str
    py_object: Literal["pros.conductor.templates.base_template.BaseTemplate"] = Field(
        default=BASE_TEMPLATE_TYPE, alias="py/object"
    )
    supported_kernels: str
    target: str
    version: str

    @property
    def location(self) -> str:
        return self.metadata.location

    def to_json_dict(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


class ExternalTemplateState(BaseModel):
    """The ``py/state`` payload of a ``template.pros`` file."""

    name: str
    supported_kernels: str
    system_files: List[str]
    target: str
    user_files: List[str]
    version: str
    metadata: Dict[str, Any] = Field(default_factory=dict)


class ExternalTemplate(BaseModel):
    """The jsonpickle document found inside a template zip."""

    model_config = ConfigDict(populate_by_name=True)

    py_object: Literal[
        "pros.conductor.templates.external_template.ExternalTemplate"
    ] = Field(default=EXTERNAL_TEMPLATE_TYPE, alias="py/object")
    py_state: ExternalTemplateState = Field(alias="py/state")

    @property
    def state(self) -> ExternalTemplateState:
        return self.py_state


Depot = List[BaseTemplate]

_DEPOT_ADAPTER: TypeAdapter[List[BaseTemplate]] = TypeAdapter(List[BaseTemplate])


def load_depot(text: str) -> Depot:
    """Parse depot JSON text into validated entries."""
    try:
        return _DEPOT_ADAPTER.validate_json(text)
    except ValidationError as exc:
        raise DepotFormatError(f"Invalid depot content: {exc.error_count()} error(s)") from exc


def dump_depot(depot: Sequence[BaseTemplate]) -> str:
    """Serialise entries using the stable two-space indented layout."""
    payload = [entry.to_json_dict() for entry in depot]
    return json.dumps(payload, indent=2)


__all__ = [
    "BASE_TEMPLATE_TYPE",
    "BaseTemplate",
    "Depot",
    "DepotFormatError",
    "EXTERNAL_TEMPLATE_TYPE",
    "ExternalTemplate",
    "ExternalTemplateState",
    "TemplateMetadata",
    "dump_depot",
    "load_depot",
]
