import pytest
from datetime import date, datetime, timedelta, timezone

from obratrack.core import clock
from obratrack.services.derivation import (
    DeadlineUrgency,
    calculate_progress,
    classify_deadline,
    current_stage,
    filter_projects,
    filter_stages,
    in_deadline_bucket,
    needs_data,
    parse_datetime,
    sort_projects,
    sort_stages,
)

TODAY = date(2024, 6, 10)


def _stage(**fields):
    base = {
        "id": 1,
        "name": "Permisos",
        "order_number": 1,
        "is_completed": False,
        "responsible_id": 1,
        "responsible_name": "Juan",
        "project_name": "Casa Norte",
        "client_id": None,
        "client_name": None,
        "start_date": None,
        "estimated_end_date": None,
        "intermediate_date": None,
        "tags": [],
    }
    base.update(fields)
    return base

# --- progress / current stage ---

def test_progress_is_zero_without_stages():
    assert calculate_progress([]) == 0
    assert calculate_progress(None) == 0

def test_progress_is_100_only_when_all_completed():
    done = [_stage(is_completed=True), _stage(id=2, is_completed=True)]
    assert calculate_progress(done) == 100
    mixed = [_stage(is_completed=True), _stage(id=2), _stage(id=3), _stage(id=4)]
    assert calculate_progress(mixed) == 25
    assert calculate_progress(mixed) != 100

def test_current_stage_is_first_incomplete_by_order():
    stages = [
        _stage(id=3, name="Entrega", order_number=3),
        _stage(id=1, name="Permisos", order_number=1, is_completed=True),
        _stage(id=2, name="Obra gruesa", order_number=2),
    ]
    assert current_stage(stages)["name"] == "Obra gruesa"

def test_current_stage_none_when_all_completed():
    assert current_stage([_stage(is_completed=True)]) is None

# --- needs data ---

def test_needs_data_started_stage_missing_end_date():
    stage = _stage(start_date="2024-06-01T10:00:00")
    assert needs_data(stage) is True

def test_needs_data_ignores_unstarted_stage_when_require_started():
    stage = _stage(responsible_id=None)
    assert needs_data(stage, require_started=True) is False
    assert needs_data(stage, require_started=False) is True

def test_needs_data_false_when_complete_or_filled():
    assert needs_data(_stage(is_completed=True, responsible_id=None, start_date="2024-06-01")) is False
    filled = _stage(start_date="2024-06-01", estimated_end_date="2024-06-30")
    assert needs_data(filled, require_started=False) is False

# --- deadline urgency ---

@pytest.mark.parametrize("target, expected", [
    (date(2024, 6, 9), DeadlineUrgency.OVERDUE),
    (date(2024, 6, 10), DeadlineUrgency.DUE_TODAY),
    (date(2024, 6, 12), DeadlineUrgency.DUE_SOON),
    (date(2024, 6, 13), DeadlineUrgency.DUE_SOON),
    (date(2024, 6, 14), DeadlineUrgency.NORMAL),
    (date(2024, 6, 20), DeadlineUrgency.NORMAL),
])
def test_classify_deadline_tiers(target, expected):
    assert classify_deadline(target, today=TODAY) == expected

def test_classify_deadline_ignores_time_of_day():
    morning = datetime(2024, 6, 12, 0, 1)
    evening = datetime(2024, 6, 12, 23, 59)
    today_late = datetime(2024, 6, 10, 23, 0)
    assert classify_deadline(morning, today=today_late) == classify_deadline(evening, today=TODAY) == DeadlineUrgency.DUE_SOON

def test_classify_deadline_completed_always_wins():
    assert classify_deadline(date(2020, 1, 1), is_completed=True, today=TODAY) == DeadlineUrgency.COMPLETED
    assert classify_deadline(None, is_completed=True, today=TODAY) == DeadlineUrgency.COMPLETED

def test_classify_deadline_absent_or_malformed_is_none():
    assert classify_deadline(None, today=TODAY) is None
    assert classify_deadline("not-a-date", today=TODAY) is None

def test_classify_deadline_uses_clock_today(monkeypatch):
    monkeypatch.setattr(clock, "today", lambda: TODAY)
    assert classify_deadline("2024-06-10") == DeadlineUrgency.DUE_TODAY

def test_malformed_today_falls_back_to_clock(monkeypatch):
    monkeypatch.setattr(clock, "today", lambda: TODAY)
    assert classify_deadline("2024-06-10", today="garbage") == DeadlineUrgency.DUE_TODAY
    assert classify_deadline("2024-06-12", today="") == DeadlineUrgency.DUE_SOON
    assert in_deadline_bucket("2024-06-10", "today", today="garbage") is True
    assert in_deadline_bucket("2024-06-09", "overdue", today=42) is True

def test_parse_datetime_handles_iso_and_garbage():
    assert parse_datetime("2024-06-10T08:00:00Z") == datetime(2024, 6, 10, 8, 0, tzinfo=timezone.utc)
    assert parse_datetime("") is None
    assert parse_datetime(42) is None

# --- stage filters ---

def test_filter_stages_search_across_fields_case_insensitive():
    stages = [
        _stage(id=1, name="Permisos", client_name="Constructora Andes"),
        _stage(id=2, name="Obra gruesa", responsible_name="María"),
        _stage(id=3, name="Entrega"),
    ]
    assert [s["id"] for s in filter_stages(stages, {"search": "ANDES"})] == [1]
    assert [s["id"] for s in filter_stages(stages, {"search": "marí"})] == [2]
    assert [s["id"] for s in filter_stages(stages, {"search": "casa norte"})] == [1, 2, 3]

def test_filter_stages_combines_predicates_with_and():
    stages = [
        _stage(id=1, responsible_id=1, is_completed=True, tags=[{"name": "urgente"}]),
        _stage(id=2, responsible_id=1, is_completed=False, tags=[{"name": "urgente"}]),
        _stage(id=3, responsible_id=2, is_completed=False, tags=["urgente"]),
    ]
    result = filter_stages(stages, {"responsible_id": 1, "is_completed": False, "tag": "urgente"})
    assert [s["id"] for s in result] == [2]

def test_filter_stages_date_ranges_inclusive_and_skip_missing():
    stages = [
        _stage(id=1, estimated_end_date="2024-06-01T18:00:00"),
        _stage(id=2, estimated_end_date="2024-06-15"),
        _stage(id=3, estimated_end_date="2024-06-30T00:00:00"),
        _stage(id=4, estimated_end_date=None),
        _stage(id=5, estimated_end_date="garbage"),
    ]
    result = filter_stages(stages, {"estimated_end_date_from": "2024-06-01", "estimated_end_date_to": date(2024, 6, 15)})
    assert [s["id"] for s in result] == [1, 2]

def test_filter_stages_needs_data_variants():
    stages = [
        _stage(id=1, responsible_id=None),
        _stage(id=2, responsible_id=None, start_date="2024-06-01"),
    ]
    assert [s["id"] for s in filter_stages(stages, {"needs_data": True})] == [2]
    assert [s["id"] for s in filter_stages(stages, {"needs_data": True, "require_started": False})] == [1, 2]

# --- stage sorting ---

def test_sort_stages_by_deadline_puts_missing_last():
    stages = [
        _stage(id=1, estimated_end_date=None),
        _stage(id=2, estimated_end_date="2024-07-01"),
        _stage(id=3, estimated_end_date="bad"),
        _stage(id=4, estimated_end_date=datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)),
        _stage(id=5, estimated_end_date="2024-06-15T00:00:00"),
    ]
    ordered = sort_stages(stages, "deadline")
    assert [s["id"] for s in ordered[:3]] == [4, 5, 2]
    assert {s["id"] for s in ordered[3:]} == {1, 3}

def test_sort_stages_by_status_incomplete_first():
    stages = [_stage(id=1, is_completed=True), _stage(id=2), _stage(id=3, is_completed=True), _stage(id=4)]
    assert [s["id"] for s in sort_stages(stages, "status")] == [2, 4, 1, 3]

def test_sort_stages_by_names():
    stages = [
        _stage(id=1, name="b", project_name="Zeta", responsible_name="carla"),
        _stage(id=2, name="A", project_name="alfa", responsible_name="Bruno"),
    ]
    assert [s["id"] for s in sort_stages(stages, "project")] == [2, 1]
    assert [s["id"] for s in sort_stages(stages, "stage")] == [2, 1]
    assert [s["id"] for s in sort_stages(stages, "responsible")] == [2, 1]

# --- projects ---

@pytest.mark.parametrize("deadline, bucket, expected", [
    (date(2024, 6, 10), "today", True),
    (date(2024, 6, 11), "today", False),
    (date(2024, 6, 17), "week", True),
    (date(2024, 6, 18), "week", False),
    (date(2024, 7, 10), "month", True),
    (date(2024, 7, 11), "month", False),
    (date(2024, 6, 9), "overdue", True),
    (date(2024, 6, 10), "overdue", False),
    (None, "week", False),
    (None, "all", True),
])
def test_in_deadline_bucket(deadline, bucket, expected):
    assert in_deadline_bucket(deadline, bucket, today=TODAY) is expected

def test_filter_projects_by_search_and_client():
    projects = [
        {"id": 1, "name": "Casa Norte", "description": None, "client_id": 1, "client_name": "Andes"},
        {"id": 2, "name": "Edificio Sur", "description": "Torre de 8 pisos", "client_id": 2, "client_name": "Pacífico"},
    ]
    assert [p["id"] for p in filter_projects(projects, {"search": "torre"})] == [2]
    assert [p["id"] for p in filter_projects(projects, {"search": "andes"})] == [1]
    assert [p["id"] for p in filter_projects(projects, {"client_id": 2})] == [2]

def test_sort_projects_orders():
    projects = [
        {"id": 1, "name": "b", "deadline": None, "updated_at": "2024-06-01T10:00:00", "stages": [{"is_completed": True}]},
        {"id": 2, "name": "A", "deadline": "2024-07-01", "updated_at": "2024-06-05T10:00:00", "stages": []},
        {"id": 3, "name": "c", "deadline": "2024-06-20", "updated_at": "2024-06-03T10:00:00",
         "stages": [{"is_completed": True}, {"is_completed": False}]},
    ]
    assert [p["id"] for p in sort_projects(projects, "name")] == [2, 1, 3]
    assert [p["id"] for p in sort_projects(projects, "deadline")] == [3, 2, 1]
    assert [p["id"] for p in sort_projects(projects, "progress")] == [1, 3, 2]
    assert [p["id"] for p in sort_projects(projects)] == [2, 3, 1]

def test_deadline_buckets_follow_clock(monkeypatch):
    monkeypatch.setattr(clock, "today", lambda: TODAY)
    assert in_deadline_bucket(TODAY + timedelta(days=3), "week") is True
