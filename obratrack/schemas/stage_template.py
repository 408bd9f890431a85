#obratrack/schemas/stage_template.py
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional
from datetime import datetime

class StageTemplateBase(BaseModel):
    """
    StageTemplateBase — базовая схема шаблона этапа.
    """
    name: str = Field(..., min_length=1, max_length=128, examples=["Obra gruesa"], description="Название этапа")
    order_number: int = Field(..., ge=1, examples=[1], description="Порядок")
    default_responsible_id: Optional[int] = Field(None, description="Ответственный по умолчанию")
    estimated_duration_days: Optional[int] = Field(None, ge=0, examples=[30], description="Длительность, дней")

class StageTemplateCreate(StageTemplateBase):
    model_config = ConfigDict(extra="forbid")

class StageTemplateUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = Field(None, min_length=1, max_length=128)
    order_number: Optional[int] = Field(None, ge=1)
    default_responsible_id: Optional[int] = None
    estimated_duration_days: Optional[int] = Field(None, ge=0)

class StageTemplateRead(StageTemplateBase):
    model_config = ConfigDict(from_attributes=True)

    id: int
    default_responsible_name: Optional[str] = None
    created_at: datetime
