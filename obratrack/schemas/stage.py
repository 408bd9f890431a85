#obratrack/schemas/stage.py
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List
from datetime import datetime

from obratrack.schemas.tag import TagShort
from obratrack.schemas.comment import CommentShort, CommentRead
from obratrack.services.derivation import DeadlineUrgency

class StageCreate(BaseModel):
    """
    StageCreate — ручное создание следующего этапа проекта.
    order_number вычисляется на сервере.
    """
    model_config = ConfigDict(extra="forbid")

    project_id: int = Field(..., examples=[1], description="ID проекта")
    name: str = Field(..., min_length=1, max_length=128, examples=["Instalaciones"], description="Название этапа")
    responsible_id: int = Field(..., examples=[1], description="Ответственный (обязателен)")
    start_date: Optional[datetime] = Field(None, description="Дата начала")
    estimated_end_date: Optional[datetime] = Field(None, description="Плановая дата окончания")

class StageUpdate(BaseModel):
    """
    StageUpdate — правка полей этапа. Явный null очищает поле.
    """
    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = Field(None, min_length=1, max_length=128)
    responsible_id: Optional[int] = None
    start_date: Optional[datetime] = None
    estimated_end_date: Optional[datetime] = None
    completed_date: Optional[datetime] = None
    intermediate_date: Optional[datetime] = None
    intermediate_date_note: Optional[str] = None

class StageOrderItem(BaseModel):
    model_config = ConfigDict(extra="forbid")

    stage_id: int
    order_number: int = Field(..., ge=1)

class StageReorder(BaseModel):
    """
    StageReorder — полная перенумерация этапов (drag & drop / вверх-вниз в UI).
    """
    model_config = ConfigDict(extra="forbid")

    items: List[StageOrderItem] = Field(..., min_length=1)

class StageRead(BaseModel):
    """
    StageRead — этап с ответственным, тегами, последними комментариями
    и производными полями.
    """
    model_config = ConfigDict(from_attributes=True)

    id: int
    project_id: int
    template_id: Optional[int] = None
    name: str
    responsible_id: Optional[int] = None
    responsible_name: Optional[str] = None
    responsible_email: Optional[str] = None
    responsible_role: Optional[str] = None
    start_date: Optional[datetime] = None
    estimated_end_date: Optional[datetime] = None
    completed_date: Optional[datetime] = None
    intermediate_date: Optional[datetime] = None
    intermediate_date_note: Optional[str] = None
    order_number: int
    is_completed: bool
    created_at: datetime
    project_name: Optional[str] = None
    client_id: Optional[int] = None
    client_name: Optional[str] = None
    tags: List[TagShort] = Field(default_factory=list)
    recent_comments: List[CommentShort] = Field(default_factory=list)
    comments_count: int = 0
    needs_data: bool = False
    deadline_urgency: Optional[DeadlineUrgency] = None

class StageDetail(StageRead):
    """
    StageDetail — этап со всеми комментариями.
    """
    comments: List[CommentRead] = Field(default_factory=list)
