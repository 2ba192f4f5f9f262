"""Common Pydantic schemas."""

import re
from typing import Annotated, Any, Dict, List, Optional, Sequence, Union

from fastapi.responses import JSONResponse
from pydantic import BaseModel, BeforeValidator, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ..core.identifiers import OBJECT_ID_LENGTH, is_object_id

_EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def _normalize_object_id(value: Any) -> Any:
    if isinstance(value, str):
        candidate = value.strip().lower()
        if is_object_id(candidate):
            return candidate
    raise ValueError(f"must be a {OBJECT_ID_LENGTH}-character hexadecimal identifier")


def _normalize_email(value: Any) -> Any:
    if isinstance(value, str):
        candidate = value.strip().lower()
        if _EMAIL_PATTERN.match(candidate):
            return candidate
    raise ValueError("must be a valid email address")


ObjectId = Annotated[str, BeforeValidator(_normalize_object_id)]
Email = Annotated[str, BeforeValidator(_normalize_email)]


class ApiModel(BaseModel):
    """Base schema: snake_case in Python, camelCase on the wire."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class IdRequest(ApiModel):
    """Request naming a single record."""

    id: ObjectId = Field(..., description="Record identifier")


class DeleteResponse(ApiModel):
    """Acknowledgement of a deletion."""

    id: str = Field(..., description="Identifier of the deleted record")
    deleted: bool = Field(True, description="Whether the record was removed")


class Problem(BaseModel):
    """RFC 9457 Problem Details response."""

    type: Optional[str] = Field(None, description="Problem type URI")
    title: str = Field(..., description="Short human-readable summary")
    status: int = Field(..., description="HTTP status code")
    detail: Optional[str] = Field(None, description="Human-readable explanation")
    instance: Optional[str] = Field(None, description="URI reference for this occurrence")
    code: Optional[str] = Field(None, description="Application-specific error code")
    retryable: Optional[bool] = Field(None, description="Whether the operation can be retried")
    errors: Optional[Dict[str, List[str]]] = Field(None, description="Field-level validation errors")


def json_response(
    data: Union[BaseModel, Sequence[BaseModel]],
    status_code: int = 200,
) -> JSONResponse:
    """Serialize one schema or a list of them with wire (camelCase) names."""
    if isinstance(data, BaseModel):
        content: Any = data.model_dump(mode="json", by_alias=True)
    else:
        content = [item.model_dump(mode="json", by_alias=True) for item in data]
    return JSONResponse(status_code=status_code, content=content)
