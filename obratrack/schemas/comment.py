#obratrack/schemas/comment.py
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional
from datetime import datetime

class CommentCreate(BaseModel):
    """
    CommentCreate — новый комментарий к этапу.
    """
    model_config = ConfigDict(extra="forbid")

    stage_id: int = Field(..., examples=[1], description="ID этапа")
    content: str = Field(..., min_length=1, examples=["Llegó el material"], description="Текст")
    author: str = Field(..., min_length=1, max_length=128, examples=["María García"], description="Автор (свободный текст)")

class CommentUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    content: Optional[str] = Field(None, min_length=1)
    author: Optional[str] = Field(None, min_length=1, max_length=128)

class CommentShort(BaseModel):
    """
    CommentShort — комментарий в составе этапа (последние N).
    """
    model_config = ConfigDict(from_attributes=True)

    id: int
    author: str
    content: str
    created_at: datetime

class CommentRead(CommentShort):
    stage_id: int
    stage_name: Optional[str] = None
    project_name: Optional[str] = None
