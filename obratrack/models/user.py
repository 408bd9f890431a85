#obratrack/models/user.py
from datetime import datetime
from sqlalchemy import Column, Integer, String, func
from obratrack.models.base import Base, UTCDateTime

class User(Base):
    """
    User — сотрудник, которого можно назначить ответственным за этап или проект.
    """
    __tablename__ = "users"

    id: int = Column(Integer, primary_key=True, index=True)
    name: str = Column(String(128), nullable=False, index=True, doc="Имя")
    email: str = Column(String(255), unique=True, nullable=False, index=True, doc="Email (уникальный)")
    role: str = Column(String(64), nullable=True, doc="Должность: инженер, архитектор, прораб ...")
    created_at: datetime = Column(UTCDateTime(), server_default=func.now(), nullable=False, doc="Дата создания")

    def __repr__(self):
        return f"<User(id={self.id}, name='{self.name}', email='{self.email}')>"
