from typing import List

from pydantic import field_validator

from .base import CamelModel


class TagResponse(CamelModel):
    name: str
    aliases: List[str] = []

    @field_validator("aliases", mode="before")
    @classmethod
    def alias_strings(cls, v):
        return sorted(getattr(alias, "alias", alias) for alias in v or [])
