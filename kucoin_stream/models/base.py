"""Shared pydantic base for KuCoin payload models."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, model_validator
from pydantic.alias_generators import to_camel


class KucoinModel(BaseModel):
    """KuCoin payloads are camelCase and grow new fields without notice."""

    model_config = {
        "frozen": True,
        "extra": "allow",
        "populate_by_name": True,
        "alias_generator": to_camel,
    }

    @model_validator(mode="before")
    @classmethod
    def _drop_empty_strings(cls, data: Any) -> Any:
        # Unset numeric fields arrive as "" (e.g. matchSize on a fresh order)
        if isinstance(data, dict):
            return {k: v for k, v in data.items() if v != ""}
        return data
