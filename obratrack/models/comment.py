#obratrack/models/comment.py
from datetime import datetime
from sqlalchemy import Column, Integer, Text, String, ForeignKey, func
from sqlalchemy.orm import relationship
from obratrack.models.base import Base, UTCDateTime

class Comment(Base):
    """
    Comment — комментарий к этапу. Автор — свободная строка, не ссылка на User.
    """
    __tablename__ = "comments"

    id: int = Column(Integer, primary_key=True, index=True)
    stage_id: int = Column(Integer, ForeignKey("stages.id", ondelete="CASCADE"), nullable=False, index=True, doc="ID этапа")
    content: str = Column(Text, nullable=False, doc="Текст комментария")
    author: str = Column(String(128), nullable=False, doc="Автор (свободный текст)")
    created_at: datetime = Column(UTCDateTime(), server_default=func.now(), nullable=False, doc="Дата создания")

    stage = relationship("Stage", back_populates="comments")

    @property
    def stage_name(self):
        return self.stage.name if self.stage else None

    @property
    def project_name(self):
        return self.stage.project.name if self.stage and self.stage.project else None

    def __repr__(self):
        return f"<Comment(id={self.id}, stage_id={self.stage_id}, author='{self.author}')>"
