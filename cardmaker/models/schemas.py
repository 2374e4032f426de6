from typing import Literal

from pydantic import BaseModel, Field, field_validator


class Card(BaseModel):
    front: str = Field(min_length=1)
    back: str = Field(min_length=1)
    extra: str | None = None
    tags: list[str] = []

    @field_validator("front", "back")
    @classmethod
    def not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be blank")
        return value


class PhrasePairItem(BaseModel):
    id: str
    front: str
    back: str
    selected: bool = True


class WorkflowSnapshot(BaseModel):
    kind: str
    title: str
    state: str
    term: str
    card: Card | None = None
    items: list[PhrasePairItem] = []
    selected_count: int = 0
    error: str | None = None
    success: bool = False


# ===== Request Models =====

class GenerateRequest(BaseModel):
    term: str


class FieldUpdate(BaseModel):
    field: Literal["front", "back", "extra"]
    value: str


class TagsUpdate(BaseModel):
    tags: str


class ItemUpdate(BaseModel):
    front: str | None = None
    back: str | None = None
