import math
from typing import Any

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field as PydanticField,
    field_validator,
)


def _has_non_finite(value: Any) -> bool:
    if isinstance(value, float):
        return not math.isfinite(value)
    if isinstance(value, dict):
        return any(_has_non_finite(v) for v in value.values())
    if isinstance(value, list):
        return any(_has_non_finite(v) for v in value)
    return False


class CachePut(BaseModel):
    """Body of ``POST /cache``: ``{"Key": <string>, "Value": <json>}``."""

    model_config = ConfigDict(populate_by_name=True)

    # Strict: a JSON number or bool is not silently coerced into a key
    key: str = PydanticField(
        ...,
        min_length=1,
        strict=True,
        validation_alias=AliasChoices("Key", "key"),
    )
    # Required but nullable; JSON null is a storable document
    value: Any = PydanticField(..., validation_alias=AliasChoices("Value", "value"))

    @field_validator("value")
    @classmethod
    def reject_non_finite_numbers(cls, value: Any) -> Any:
        # NaN, Infinity and overflowing literals like 1e400 are not JSON
        if _has_non_finite(value):
            raise ValueError("NaN and infinite numbers are not valid JSON")
        return value
