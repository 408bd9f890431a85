# obratrack/services/derivation.py
"""
Производные факты для списков проектов и этапов: прогресс, текущий этап,
признак "не хватает данных", срочность дедлайна, фильтры и сортировки.

Функции чистые и принимают как ORM-объекты, так и обычные dict
(например, уже сериализованные ответы API). Некорректные даты считаются
отсутствующими и никогда не приводят к исключению.
"""
from calendar import monthrange
from collections.abc import Mapping
from datetime import date, datetime, timedelta, timezone
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Optional

from obratrack.core import clock

DUE_SOON_DAYS = 3


class DeadlineUrgency(str, Enum):
    COMPLETED = "completed"
    OVERDUE = "overdue"
    DUE_TODAY = "due-today"
    DUE_SOON = "due-soon"
    NORMAL = "normal"


# === Общие помощники ===

def _value(item: Any, key: str, default: Any = None) -> Any:
    if isinstance(item, Mapping):
        return item.get(key, default)
    return getattr(item, key, default)


def parse_datetime(value: Any) -> Optional[datetime]:
    """Приводит date/datetime/ISO-строку к datetime; всё остальное — None."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if isinstance(value, str):
        raw = value.strip()
        if not raw:
            return None
        try:
            return datetime.fromisoformat(raw.replace("Z", "+00:00"))
        except ValueError:
            return None
    return None


def to_local_date(value: Any) -> Optional[date]:
    """
    Календарная дата в локальной зоне (время суток отбрасывается).
    Aware-значения (в том числе прочитанные из базы) переводятся в локальную
    зону, naive-значения уже считаются локальными.
    """
    if isinstance(value, date) and not isinstance(value, datetime):
        return value
    dt = parse_datetime(value)
    if dt is None:
        return None
    if dt.tzinfo is not None:
        try:
            dt = dt.astimezone()
        except (OverflowError, OSError):
            return None
    return dt.date()


def _timestamp(value: Any) -> Optional[datetime]:
    # naive UTC, чтобы aware и naive (локальные) значения сравнивались между собой
    dt = parse_datetime(value)
    if dt is None:
        return None
    try:
        return dt.astimezone(timezone.utc).replace(tzinfo=None)
    except (OverflowError, OSError):
        return None


def _current_day(today: Any) -> date:
    # Некорректный today не ломает расчёт: берём сегодняшнюю дату
    return to_local_date(today) or clock.today()


def _text(value: Any) -> str:
    return str(value or "").casefold()


def _sorted_missing_last(items: List[Any], key: Callable[[Any], Any], descending: bool = False) -> List[Any]:
    present = [i for i in items if key(i) is not None]
    missing = [i for i in items if key(i) is None]
    return sorted(present, key=key, reverse=descending) + missing


# === Проекты и этапы ===

def calculate_progress(stages: Iterable[Any]) -> float:
    """Процент завершённых этапов; 0 для проекта без этапов."""
    stages = list(stages or [])
    if not stages:
        return 0.0
    completed = sum(1 for s in stages if _value(s, "is_completed"))
    return completed / len(stages) * 100


def current_stage(stages: Iterable[Any]) -> Optional[Any]:
    """Первый незавершённый этап по order_number или None, если все завершены."""
    ordered = sorted(stages or [], key=lambda s: _value(s, "order_number") or 0)
    return next((s for s in ordered if not _value(s, "is_completed")), None)


def needs_data(stage: Any, require_started: bool = True) -> bool:
    """
    Этап требует внимания оператора: не завершён, не хватает ответственного
    или плановой даты окончания. При require_started учитываются только
    уже начатые этапы.
    """
    if _value(stage, "is_completed"):
        return False
    if require_started and parse_datetime(_value(stage, "start_date")) is None:
        return False
    return not _value(stage, "responsible_id") or parse_datetime(_value(stage, "estimated_end_date")) is None


def classify_deadline(target: Any, is_completed: bool = False, today: Any = None) -> Optional[DeadlineUrgency]:
    """
    Уровень срочности даты относительно сегодняшнего дня.
    Завершённые — всегда COMPLETED; без даты — None.
    """
    if is_completed:
        return DeadlineUrgency.COMPLETED
    target_day = to_local_date(target)
    if target_day is None:
        return None
    current_day = _current_day(today)
    diff_days = (target_day - current_day).days
    if diff_days < 0:
        return DeadlineUrgency.OVERDUE
    if diff_days == 0:
        return DeadlineUrgency.DUE_TODAY
    if diff_days <= DUE_SOON_DAYS:
        return DeadlineUrgency.DUE_SOON
    return DeadlineUrgency.NORMAL


# === Фильтры этапов ===

def _tag_names(stage: Any) -> List[str]:
    names = []
    for tag in _value(stage, "tags") or []:
        names.append(tag if isinstance(tag, str) else _value(tag, "name"))
    return names


def _within(value: Any, lower: Any, upper: Any) -> bool:
    lower_day, upper_day = to_local_date(lower), to_local_date(upper)
    if lower_day is None and upper_day is None:
        return True
    day = to_local_date(value)
    if day is None:
        return False
    if lower_day is not None and day < lower_day:
        return False
    if upper_day is not None and day > upper_day:
        return False
    return True


def stage_predicates(filters: Optional[Dict[str, Any]]) -> List[Callable[[Any], bool]]:
    filters = {k: v for k, v in (filters or {}).items() if v is not None}
    predicates: List[Callable[[Any], bool]] = []

    if str(filters.get("search", "")).strip():
        term = filters["search"].strip().casefold()
        fields = ("name", "project_name", "responsible_name", "client_name")
        predicates.append(lambda s: any(term in _text(_value(s, f)) for f in fields))
    if "responsible_id" in filters:
        predicates.append(lambda s: _value(s, "responsible_id") == filters["responsible_id"])
    if "client_id" in filters:
        predicates.append(lambda s: _value(s, "client_id") == filters["client_id"])
    if "is_completed" in filters:
        predicates.append(lambda s: bool(_value(s, "is_completed")) == bool(filters["is_completed"]))
    if "tag" in filters:
        predicates.append(lambda s: filters["tag"] in _tag_names(s))
    if "start_date_from" in filters or "start_date_to" in filters:
        predicates.append(lambda s: _within(_value(s, "start_date"), filters.get("start_date_from"), filters.get("start_date_to")))
    if "estimated_end_date_from" in filters or "estimated_end_date_to" in filters:
        predicates.append(lambda s: _within(
            _value(s, "estimated_end_date"),
            filters.get("estimated_end_date_from"),
            filters.get("estimated_end_date_to"),
        ))
    if filters.get("needs_data"):
        require_started = filters.get("require_started", True)
        predicates.append(lambda s: needs_data(s, require_started=require_started))
    return predicates


def filter_stages(stages: Iterable[Any], filters: Optional[Dict[str, Any]] = None) -> List[Any]:
    predicates = stage_predicates(filters)
    return [s for s in stages if all(p(s) for p in predicates)]


STAGE_SORT_OPTIONS = ("project", "stage", "responsible", "deadline", "intermediate_date", "status")


def sort_stages(stages: Iterable[Any], sort_by: str = "project") -> List[Any]:
    """Стабильная сортировка; этапы без даты всегда в конце."""
    stages = list(stages)
    if sort_by == "project":
        return sorted(stages, key=lambda s: _text(_value(s, "project_name")))
    if sort_by == "stage":
        return sorted(stages, key=lambda s: _text(_value(s, "name")))
    if sort_by == "responsible":
        return sorted(stages, key=lambda s: _text(_value(s, "responsible_name")))
    if sort_by == "deadline":
        return _sorted_missing_last(stages, lambda s: _timestamp(_value(s, "estimated_end_date")))
    if sort_by == "intermediate_date":
        return _sorted_missing_last(stages, lambda s: _timestamp(_value(s, "intermediate_date")))
    if sort_by == "status":
        return sorted(stages, key=lambda s: 1 if _value(s, "is_completed") else 0)
    return stages


# === Фильтры проектов ===

def _add_one_month(day: date) -> date:
    year, month = (day.year + 1, 1) if day.month == 12 else (day.year, day.month + 1)
    return day.replace(year=year, month=month, day=min(day.day, monthrange(year, month)[1]))


def in_deadline_bucket(deadline: Any, bucket: Optional[str], today: Any = None) -> bool:
    """today / week / month / overdue; "all" или None пропускают всё."""
    if not bucket or bucket == "all":
        return True
    day = to_local_date(deadline)
    if day is None:
        return False
    current_day = _current_day(today)
    if bucket == "today":
        return day == current_day
    if bucket == "week":
        return current_day <= day <= current_day + timedelta(days=7)
    if bucket == "month":
        return current_day <= day <= _add_one_month(current_day)
    if bucket == "overdue":
        return day < current_day
    return True


def project_progress(project: Any) -> float:
    stages = _value(project, "stages")
    if stages is not None:
        return calculate_progress(stages)
    total = _value(project, "total_stages") or 0
    return (_value(project, "completed_stages") or 0) / total * 100 if total else 0.0


def filter_projects(projects: Iterable[Any], filters: Optional[Dict[str, Any]] = None, today: Any = None) -> List[Any]:
    filters = {k: v for k, v in (filters or {}).items() if v is not None}
    result = list(projects)

    if str(filters.get("search", "")).strip():
        term = filters["search"].strip().casefold()
        fields = ("name", "description", "client_name")
        result = [p for p in result if any(term in _text(_value(p, f)) for f in fields)]
    if "client_id" in filters:
        result = [p for p in result if _value(p, "client_id") == filters["client_id"]]
    if filters.get("deadline_filter"):
        result = [p for p in result if in_deadline_bucket(_value(p, "deadline"), filters["deadline_filter"], today)]
    return result


PROJECT_SORT_OPTIONS = ("name", "deadline", "progress", "recent")


def sort_projects(projects: Iterable[Any], sort_by: str = "recent") -> List[Any]:
    projects = list(projects)
    if sort_by == "name":
        return sorted(projects, key=lambda p: _text(_value(p, "name")))
    if sort_by == "deadline":
        return _sorted_missing_last(projects, lambda p: _timestamp(_value(p, "deadline")))
    if sort_by == "progress":
        return sorted(projects, key=project_progress, reverse=True)
    return _sorted_missing_last(projects, lambda p: _timestamp(_value(p, "updated_at")), descending=True)
