import json
from datetime import datetime
from typing import Dict, Optional, Union

from pydantic import BaseModel, Field, StrictBool, StrictFloat, StrictInt, StrictStr, field_validator
from pydantic import ValidationError as PydanticValidationError

from backtrack.core.errors import ValidationError

# Tagged attribute values; bool is listed first so True never becomes 1
AttributeValue = Union[StrictBool, StrictInt, StrictFloat, StrictStr, None]


class ValidatedItem(BaseModel):
    title: str = Field(min_length=1, max_length=120)
    description: Optional[str] = Field(default=None, max_length=2000)
    location: Optional[str] = Field(default=None, max_length=200)
    date: Optional[datetime] = None
    contact_info: Optional[str] = Field(default=None, max_length=200)
    attributes: Dict[str, AttributeValue] = Field(default_factory=dict)

    @field_validator("title", "description", "location", "contact_info", mode="before")
    @classmethod
    def strip_text(cls, value):
        if isinstance(value, str):
            return value.strip()
        return value


class ValidatedItemPatch(ValidatedItem):
    title: Optional[str] = Field(default=None, min_length=1, max_length=120)


def _errors(exc: PydanticValidationError):
    return [
        {"loc": [str(part) for part in err["loc"]], "msg": err["msg"]}
        for err in exc.errors()
    ]


def validate_item(data: dict) -> ValidatedItem:
    try:
        return ValidatedItem(**data)
    except PydanticValidationError as e:
        raise ValidationError("Invalid item payload", detail=_errors(e))


def validate_item_patch(data: dict) -> ValidatedItemPatch:
    try:
        patch = ValidatedItemPatch(**data)
    except PydanticValidationError as e:
        raise ValidationError("Invalid item patch", detail=_errors(e))

    if "title" in patch.model_fields_set and patch.title is None:
        raise ValidationError("Title cannot be removed")

    return patch


def parse_attributes(raw: Optional[str]) -> Optional[dict]:
    if raw is None or not raw.strip():
        return None

    try:
        value = json.loads(raw)
    except json.JSONDecodeError:
        raise ValidationError("Attributes must be a JSON object")

    if not isinstance(value, dict):
        raise ValidationError("Attributes must be a JSON object")

    return value
