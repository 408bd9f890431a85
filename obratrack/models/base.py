#obratrack/models/base.py
"""
Базовый класс для всех ORM-моделей проекта.

Использовать как Base при описании моделей:
    from obratrack.models.base import Base
"""
from datetime import timezone

from sqlalchemy import DateTime
from sqlalchemy.orm import declarative_base
from sqlalchemy.types import TypeDecorator

Base = declarative_base()


class UTCDateTime(TypeDecorator):
    """
    Момент времени, который хранится в UTC и читается как aware UTC.

    SQLite отбрасывает смещение при записи, поэтому aware-значения приводятся
    к UTC до записи, а naive-значения из базы считаются UTC. Naive-значение
    на входе трактуется как локальное время.
    """
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        return value.astimezone(timezone.utc)

    def process_result_value(self, value, dialect):
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value
