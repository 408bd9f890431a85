#obratrack/models/stage_template.py
from datetime import datetime
from sqlalchemy import Column, Integer, String, ForeignKey, func
from sqlalchemy.orm import relationship
from obratrack.models.base import Base, UTCDateTime

class StageTemplate(Base):
    """
    StageTemplate — глобальный шаблон этапа. Набор шаблонов, упорядоченный по
    order_number, копируется в этапы каждого нового проекта.
    """
    __tablename__ = "stage_templates"

    id: int = Column(Integer, primary_key=True, index=True)
    name: str = Column(String(128), nullable=False, doc="Название этапа")
    order_number: int = Column(Integer, nullable=False, index=True, doc="Порядок в последовательности шаблонов")
    default_responsible_id: int = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, doc="Ответственный по умолчанию")
    estimated_duration_days: int = Column(Integer, nullable=True, doc="Оценка длительности, дней")
    created_at: datetime = Column(UTCDateTime(), server_default=func.now(), nullable=False, doc="Дата создания")

    default_responsible = relationship("User")

    @property
    def default_responsible_name(self):
        return self.default_responsible.name if self.default_responsible else None

    def __repr__(self):
        return (
            f"<StageTemplate(id={self.id}, name='{self.name}', order_number={self.order_number}, "
            f"estimated_duration_days={self.estimated_duration_days})>"
        )
