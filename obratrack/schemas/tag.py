#obratrack/schemas/tag.py
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional
from datetime import datetime

class TagBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=64, examples=["urgente"], description="Имя тега (уникальное)")
    color: Optional[str] = Field(None, max_length=16, examples=["#FF5722"], description="Цвет")

class TagCreate(TagBase):
    model_config = ConfigDict(extra="forbid")

class TagUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = Field(None, min_length=1, max_length=64)
    color: Optional[str] = Field(None, max_length=16)

class TagShort(BaseModel):
    """
    TagShort — тег в составе этапа.
    """
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    color: Optional[str] = None

class TagRead(TagBase):
    model_config = ConfigDict(from_attributes=True)

    id: int
    created_at: datetime
    usage_count: int = 0

class StageTagAssign(BaseModel):
    """
    StageTagAssign — назначение тега этапу.
    """
    model_config = ConfigDict(extra="forbid")

    tag_id: int = Field(..., examples=[1])
