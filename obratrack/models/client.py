#obratrack/models/client.py
from datetime import datetime
from sqlalchemy import Column, Integer, String, func
from obratrack.models.base import Base, UTCDateTime

class Client(Base):
    """
    Client — заказчик объекта.
    """
    __tablename__ = "clients"

    id: int = Column(Integer, primary_key=True, index=True)
    name: str = Column(String(128), nullable=False, index=True, doc="Название / имя заказчика")
    email: str = Column(String(255), nullable=True, doc="Email")
    phone: str = Column(String(32), nullable=True, doc="Телефон")
    created_at: datetime = Column(UTCDateTime(), server_default=func.now(), nullable=False, doc="Дата создания")

    def __repr__(self):
        return f"<Client(id={self.id}, name='{self.name}')>"
