"""Pydantic schemas for activity input validation.

Request bodies are parsed through these models by the service layer, not by
Litestar. Failures surface as the domain ``ValidationError``.
"""

import re
from datetime import date
from typing import Any, TypeVar

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic import ValidationError as PydanticValidationError

from daytrack_server.core.exceptions import ValidationError
from daytrack_server.models.activity import CATEGORY_MAX_LENGTH, MINUTES_PER_DAY, NAME_MAX_LENGTH

DATE_PATTERN = re.compile(r"\d{4}-\d{2}-\d{2}", re.ASCII)

ModelT = TypeVar("ModelT", bound=BaseModel)


def parse_day(value: Any) -> date:
    """Parse a strict YYYY-MM-DD string into a date.

    Raises:
        ValueError: If the value is not a string in that exact format, or
            names a day that doesn't exist (e.g. 2024-02-30)
    """
    if type(value) is date:
        return value
    if not isinstance(value, str) or not DATE_PATTERN.fullmatch(value):
        raise ValueError("Date must be in YYYY-MM-DD format")
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise ValueError("Date must be a valid calendar date") from None


class ActivityCreate(BaseModel):
    """Fields accepted when logging a new activity."""

    model_config = ConfigDict(extra="ignore")

    day: date = Field(
        validation_alias=AliasChoices("date", "day"),
        description="Calendar day the minutes count against (YYYY-MM-DD)",
    )
    name: str = Field(min_length=1, max_length=NAME_MAX_LENGTH)
    category: str = Field(min_length=1, max_length=CATEGORY_MAX_LENGTH)
    minutes: int = Field(ge=1, le=MINUTES_PER_DAY, strict=True)

    @field_validator("day", mode="before")
    @classmethod
    def _check_day(cls, value: Any) -> date:
        return parse_day(value)


class ActivityUpdate(BaseModel):
    """Partial update of an activity.

    Fields may be omitted but never set to null. The day and owner of an
    activity are immutable, so any other keys are ignored.
    """

    model_config = ConfigDict(extra="ignore")

    name: str | None = Field(default=None, min_length=1, max_length=NAME_MAX_LENGTH)
    category: str | None = Field(default=None, min_length=1, max_length=CATEGORY_MAX_LENGTH)
    minutes: int | None = Field(default=None, ge=1, le=MINUTES_PER_DAY, strict=True)

    @field_validator("name", "category", "minutes", mode="before")
    @classmethod
    def _reject_null(cls, value: Any) -> Any:
        if value is None:
            raise ValueError("Field may be omitted but not set to null")
        return value

    @model_validator(mode="after")
    def _require_changes(self) -> "ActivityUpdate":
        if not self.model_fields_set:
            raise ValueError("At least one of name, category or minutes must be provided")
        return self

    def changes(self) -> dict[str, Any]:
        """Only the fields the caller actually provided."""
        return self.model_dump(exclude_unset=True)


def _field_name(loc: tuple[int | str, ...]) -> str:
    if not loc:
        return "body"
    name = str(loc[0])
    return "date" if name == "day" else name


def validate_payload(model: type[ModelT], data: Any) -> ModelT:
    """Validate raw input against a schema.

    Args:
        model: Schema class to validate with
        data: Raw input (normally a decoded JSON object)

    Returns:
        Validated model instance

    Raises:
        ValidationError: Listing every violated field
    """
    if not isinstance(data, dict):
        raise ValidationError([{"field": "body", "message": "Expected a JSON object"}])

    try:
        return model.model_validate(data)
    except PydanticValidationError as exc:
        details = [
            {
                "field": _field_name(err["loc"]),
                "message": err["msg"].removeprefix("Value error, "),
            }
            for err in exc.errors()
        ]
        raise ValidationError(details) from exc
