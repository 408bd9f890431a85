#obratrack/models/tag.py
from datetime import datetime
from sqlalchemy import Column, Integer, String, ForeignKey, Table, func
from sqlalchemy.orm import relationship
from obratrack.models.base import Base, UTCDateTime

# Связь этап ↔ тег; составной PK запрещает повторное назначение
stage_tags = Table(
    "stage_tags",
    Base.metadata,
    Column("stage_id", Integer, ForeignKey("stages.id", ondelete="CASCADE"), primary_key=True),
    Column("tag_id", Integer, ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True),
)

class Tag(Base):
    """
    Tag — метка этапа (имя уникально, цвет опционален).
    """
    __tablename__ = "tags"

    id: int = Column(Integer, primary_key=True, index=True)
    name: str = Column(String(64), unique=True, nullable=False, index=True, doc="Имя тега")
    color: str = Column(String(16), nullable=True, doc="Цвет (#hex)")
    created_at: datetime = Column(UTCDateTime(), server_default=func.now(), nullable=False, doc="Дата создания")

    stages = relationship("Stage", secondary=stage_tags, back_populates="tags")

    @property
    def usage_count(self) -> int:
        return len(self.stages)

    def __repr__(self):
        return f"<Tag(id={self.id}, name='{self.name}')>"
