"""Raw snapshot records, as authored."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class RawCodeBlock(BaseModel):
    """Code sample record."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    language: str = ""
    content: str = ""


class RawEntry(BaseModel):
    """Entry record with its references as literal target strings."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    title: str
    body: str = ""
    code_blocks: list[RawCodeBlock] = Field(default_factory=list)
    references: list[str] = Field(default_factory=list)


class RawSection(BaseModel):
    """Heading record with its nominal level, which may be inconsistent."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    level: int = Field(..., ge=1)
    title: str
    entries: list[RawEntry] = Field(default_factory=list)
