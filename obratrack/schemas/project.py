#obratrack/schemas/project.py
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List, Literal
from datetime import date, datetime

from obratrack.schemas.stage import StageRead
from obratrack.services.derivation import DeadlineUrgency

ProjectStatus = Literal["active", "paused", "completed"]

class ProjectCreate(BaseModel):
    """
    ProjectCreate — создание объекта; этапы создаются из шаблонов.
    """
    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., min_length=1, max_length=128, examples=["Casa Los Álamos"], description="Название")
    description: Optional[str] = Field(None, description="Описание")
    client_id: Optional[int] = Field(None, description="ID заказчика")
    responsible_id: Optional[int] = Field(None, description="Ответственный за объект")
    deadline: Optional[date] = Field(None, examples=["2025-12-31"], description="Дедлайн")
    status: ProjectStatus = Field("active", description="Статус: active, paused, completed")

class ProjectUpdate(BaseModel):
    """
    ProjectUpdate — обновление проекта (все поля опциональны).
    """
    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = Field(None, min_length=1, max_length=128)
    description: Optional[str] = None
    client_id: Optional[int] = None
    responsible_id: Optional[int] = None
    deadline: Optional[date] = None
    status: Optional[ProjectStatus] = None

class ProjectSummary(BaseModel):
    """
    ProjectSummary — строка списка проектов с агрегатами по этапам.
    """
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: Optional[str] = None
    status: str
    client_id: Optional[int] = None
    client_name: Optional[str] = None
    responsible_id: Optional[int] = None
    responsible_name: Optional[str] = None
    deadline: Optional[date] = None
    created_at: datetime
    updated_at: datetime
    total_stages: int = 0
    completed_stages: int = 0
    current_stage: Optional[str] = None
    progress: float = 0.0
    deadline_urgency: Optional[DeadlineUrgency] = None

class ProjectRead(ProjectSummary):
    """
    ProjectRead — проект с упорядоченными этапами.
    """
    stages: List[StageRead] = Field(default_factory=list)
