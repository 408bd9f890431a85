#obratrack/models/project.py
from datetime import datetime, date
from sqlalchemy import Column, Integer, String, Date, Text, ForeignKey, Index, func
from sqlalchemy.orm import relationship
from obratrack.models.base import Base, UTCDateTime
from obratrack.services.derivation import calculate_progress, classify_deadline, current_stage

PROJECT_STATUSES = ("active", "paused", "completed")

class Project(Base):
    """
    Project — объект (obra). Владеет упорядоченным набором этапов; удаление
    проекта каскадно удаляет этапы, их комментарии и связи с тегами.
    """
    __tablename__ = "projects"

    id: int = Column(Integer, primary_key=True, autoincrement=True)
    name: str = Column(String(128), nullable=False, index=True, doc="Название объекта")
    description: str = Column(Text, nullable=True, doc="Описание")
    client_id: int = Column(Integer, ForeignKey("clients.id", ondelete="SET NULL"), nullable=True, index=True, doc="Заказчик")
    responsible_id: int = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, doc="Ответственный за объект")
    deadline: date = Column(Date, nullable=True, doc="Дедлайн")
    status: str = Column(String(16), nullable=False, default="active", index=True, doc="Статус: active, paused, completed")
    created_at: datetime = Column(UTCDateTime(), server_default=func.now(), nullable=False, doc="Дата создания")
    updated_at: datetime = Column(UTCDateTime(), server_default=func.now(), onupdate=func.now(), nullable=False, doc="Дата изменения")

    client = relationship("Client")
    responsible = relationship("User")
    stages = relationship(
        "Stage",
        back_populates="project",
        cascade="all, delete-orphan",
        order_by="Stage.order_number",
    )

    __table_args__ = (
        Index("ix_projects_deadline", "deadline"),
    )

    # --- Производные поля (для ответов API) ---

    @property
    def client_name(self):
        return self.client.name if self.client else None

    @property
    def responsible_name(self):
        return self.responsible.name if self.responsible else None

    @property
    def total_stages(self) -> int:
        return len(self.stages)

    @property
    def completed_stages(self) -> int:
        return sum(1 for s in self.stages if s.is_completed)

    @property
    def current_stage(self):
        stage = current_stage(self.stages)
        return stage.name if stage else None

    @property
    def progress(self) -> float:
        return calculate_progress(self.stages)

    @property
    def deadline_urgency(self):
        return classify_deadline(self.deadline, self.status == "completed")

    def __repr__(self):
        return f"<Project(id={self.id}, name='{self.name}', status='{self.status}')>"
