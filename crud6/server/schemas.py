"""
API Schemas.

Pydantic models for the request bodies and responses whose shape does not
depend on a JSON schema. Record payloads themselves are free-form
dictionaries validated against the model's field rules.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ConfigResponse(BaseModel):
    """Client-facing configuration flags."""

    debug_mode: bool = Field(..., description="Whether CRUD6 debug tracing is enabled on the server.")


class RelationshipIdsRequest(BaseModel):
    """
    Body of the attach/detach endpoints.

    ``related_ids`` is the documented key; ``ids`` is accepted as an alias.
    """

    related_ids: Optional[List[Any]] = Field(
        default=None, description="Identifiers of the related records.", examples=[[1, 2, 3]]
    )
    ids: Optional[List[Any]] = Field(default=None, description="Alias of related_ids.")

    model_config = ConfigDict(extra="allow")

    def resolved_ids(self) -> List[Any]:
        if self.related_ids is not None:
            return self.related_ids
        return self.ids or []


class SchemaResponse(BaseModel):
    """Schema endpoint response."""

    message: str
    model: str
    modelDisplayName: str
    schema_: Dict[str, Any] = Field(..., alias="schema")

    model_config = ConfigDict(populate_by_name=True)


class RecordResponse(BaseModel):
    """Single record read response."""

    message: str
    model: str
    modelDisplayName: str
    id: Any
    data: Dict[str, Any]


class ListResponse(BaseModel):
    """Sprunje listing response."""

    count: int
    count_filtered: int
    rows: List[Dict[str, Any]]
    listable: List[str]


class MessageResponse(BaseModel):
    """Generic success response of mutating endpoints."""

    title: str
    description: str
    data: Optional[Dict[str, Any]] = None

    model_config = ConfigDict(extra="allow")
