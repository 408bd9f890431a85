# obratrack/core/clock.py
"""
Источник текущего времени. Все модули берут "сейчас" и "сегодня" отсюда,
чтобы тесты могли подменить часы через monkeypatch.
"""
from datetime import date, datetime, timezone


def now() -> datetime:
    return datetime.now(timezone.utc)


def today() -> date:
    # Локальная календарная дата (для классификации дедлайнов)
    return date.today()
