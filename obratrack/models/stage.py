#obratrack/models/stage.py
from datetime import datetime
from sqlalchemy import Column, Integer, String, Text, ForeignKey, Boolean, Index, func
from sqlalchemy.orm import relationship
from obratrack.models.base import Base, UTCDateTime
from obratrack.models.comment import Comment
from obratrack.models.tag import Tag, stage_tags
from obratrack.core.settings import settings
from obratrack.services.derivation import classify_deadline, needs_data

RECENT_COMMENTS_LIMIT = 3

class Stage(Base):
    """
    Stage — этап проекта. Порядок задаётся order_number внутри проекта
    (без уникальности на уровне БД). is_completed и completed_date ставятся
    вместе при завершении и вместе очищаются при повторном открытии.
    """
    __tablename__ = "stages"

    id: int = Column(Integer, primary_key=True, autoincrement=True)
    project_id: int = Column(Integer, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True, doc="ID проекта")
    template_id: int = Column(Integer, ForeignKey("stage_templates.id", ondelete="SET NULL"), nullable=True, doc="Шаблон-источник")
    name: str = Column(String(128), nullable=False, doc="Название этапа")
    responsible_id: int = Column(Integer, ForeignKey("users.id", ondelete="RESTRICT"), nullable=True, index=True, doc="Ответственный")
    start_date: datetime = Column(UTCDateTime(), nullable=True, doc="Дата начала")
    estimated_end_date: datetime = Column(UTCDateTime(), nullable=True, doc="Плановая дата окончания")
    completed_date: datetime = Column(UTCDateTime(), nullable=True, doc="Фактическая дата завершения")
    intermediate_date: datetime = Column(UTCDateTime(), nullable=True, doc="Промежуточная веха")
    intermediate_date_note: str = Column(Text, nullable=True, doc="Заметка к промежуточной вехе")
    order_number: int = Column(Integer, nullable=False, doc="Позиция в проекте")
    is_completed: bool = Column(Boolean, default=False, nullable=False, doc="Завершён")
    created_at: datetime = Column(UTCDateTime(), server_default=func.now(), nullable=False, doc="Дата создания")

    project = relationship("Project", back_populates="stages")
    template = relationship("StageTemplate")
    responsible = relationship("User")
    tags = relationship("Tag", secondary=stage_tags, back_populates="stages", order_by=Tag.name)
    comments = relationship(
        "Comment",
        back_populates="stage",
        cascade="all, delete-orphan",
        order_by=(Comment.created_at.desc(), Comment.id.desc()),
    )

    __table_args__ = (
        Index("ix_stages_project_order", "project_id", "order_number"),
    )

    # --- Производные поля (для ответов API и фильтров) ---

    @property
    def responsible_name(self):
        return self.responsible.name if self.responsible else None

    @property
    def responsible_email(self):
        return self.responsible.email if self.responsible else None

    @property
    def responsible_role(self):
        return self.responsible.role if self.responsible else None

    @property
    def project_name(self):
        return self.project.name if self.project else None

    @property
    def client_id(self):
        return self.project.client_id if self.project else None

    @property
    def client_name(self):
        return self.project.client_name if self.project else None

    @property
    def recent_comments(self):
        return self.comments[:RECENT_COMMENTS_LIMIT]

    @property
    def comments_count(self) -> int:
        return len(self.comments)

    @property
    def needs_data(self) -> bool:
        return needs_data(self, require_started=settings.NEEDS_DATA_REQUIRE_STARTED)

    @property
    def deadline_urgency(self):
        return classify_deadline(self.estimated_end_date, self.is_completed)

    def __repr__(self):
        return (
            f"<Stage(id={self.id}, project_id={self.project_id}, name='{self.name}', "
            f"order_number={self.order_number}, is_completed={self.is_completed})>"
        )
