import os
import time
import pytest
from datetime import date, datetime, timedelta, timezone
from sqlalchemy import select, func
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from obratrack.core import clock
from obratrack.crud import stage as stage_crud
from obratrack.crud.project import create_project, delete_project
from obratrack.crud.stage import (
    build_stages_from_templates,
    seed_stages_from_templates,
    create_stage,
    get_stage,
    get_all_stages,
    update_stage,
    delete_stage,
    complete_stage,
    uncomplete_stage,
    start_stage,
    reorder_stages,
    attach_tag,
    detach_tag,
    project_write_lock,
)
from obratrack.crud.comment import create_comment
from obratrack.crud.tag import create_tag
from obratrack.core.exceptions import (
    ProjectNotFound,
    UserNotFound,
    StageNotFound,
    StageSequenceError,
    StageAlreadyStarted,
    StageValidationError,
    DuplicateTagAssignment,
    TagAssignmentNotFound,
)
from obratrack.models.comment import Comment
from obratrack.models.project import Project
from obratrack.models.stage import Stage
from obratrack.models.stage_template import StageTemplate
from obratrack.models.tag import stage_tags
from obratrack.services.derivation import DeadlineUrgency, to_local_date

FIXED_NOW = datetime(2024, 6, 10, 9, 30, tzinfo=timezone.utc)


@pytest.fixture
def frozen_clock(monkeypatch):
    monkeypatch.setattr(clock, "now", lambda: FIXED_NOW)
    return FIXED_NOW


@pytest.fixture
def empty_project(db: Session):
    return create_project(db, {"name": "Casa Norte"})


@pytest.fixture
def first_stage(db: Session, empty_project, test_user):
    return create_stage(db, {"project_id": empty_project.id, "name": "Permisos", "responsible_id": test_user.id})

# --- Заполнение из шаблонов ---

def test_project_seeded_from_two_templates(db: Session, two_templates, frozen_clock, test_user):
    project = create_project(db, {"name": "Casa Los Álamos"})
    stages = sorted(project.stages, key=lambda s: s.order_number)

    assert [s.name for s in stages] == ["Permisos", "Obra gruesa"]
    assert [s.order_number for s in stages] == [1, 2]
    assert stages[0].start_date == frozen_clock
    assert stages[0].estimated_end_date == frozen_clock + timedelta(days=3)
    assert stages[1].start_date is None
    assert stages[1].estimated_end_date == frozen_clock + timedelta(days=8)
    assert stages[0].responsible_id == test_user.id
    assert stages[1].responsible_id is None
    assert [s.template_id for s in stages] == [t.id for t in two_templates]
    assert not any(s.is_completed for s in stages)

@pytest.fixture
def tokyo_timezone():
    if not hasattr(time, "tzset"):
        pytest.skip("time.tzset is not available on this platform")
    previous = os.environ.get("TZ")
    os.environ["TZ"] = "JST-9"
    time.tzset()
    yield
    if previous is None:
        os.environ.pop("TZ", None)
    else:
        os.environ["TZ"] = previous
    time.tzset()

def test_seeded_dates_keep_local_calendar_day_outside_utc(db: Session, two_templates, monkeypatch, tokyo_timezone):
    # 20:00 UTC 10 июня = 05:00 11 июня по Токио
    now = datetime(2024, 6, 10, 20, 0, tzinfo=timezone.utc)
    monkeypatch.setattr(clock, "now", lambda: now)
    monkeypatch.setattr(clock, "today", lambda: date(2024, 6, 11))

    project = create_project(db, {"name": "Casa Tokio"})
    db.expire_all()
    first, second = sorted(db.get(Project, project.id).stages, key=lambda s: s.order_number)

    assert first.start_date == now
    assert to_local_date(first.start_date) == date(2024, 6, 11)
    assert to_local_date(first.estimated_end_date) == date(2024, 6, 14)
    assert to_local_date(second.estimated_end_date) == date(2024, 6, 19)
    assert first.deadline_urgency == DeadlineUrgency.DUE_SOON

def test_template_without_duration_has_no_end_date_and_counts_as_zero():
    templates = [
        StageTemplate(id=1, name="A", order_number=1, estimated_duration_days=None),
        StageTemplate(id=2, name="B", order_number=2, estimated_duration_days=4),
        StageTemplate(id=3, name="C", order_number=3, estimated_duration_days=0),
    ]
    stages = build_stages_from_templates(templates, FIXED_NOW)
    assert stages[0].estimated_end_date is None
    assert stages[1].estimated_end_date == FIXED_NOW + timedelta(days=4)
    assert stages[2].estimated_end_date == FIXED_NOW + timedelta(days=4)
    assert stages[0].start_date == FIXED_NOW
    assert stages[1].start_date is None and stages[2].start_date is None

def test_project_without_templates_has_no_stages(db: Session):
    project = create_project(db, {"name": "Galpón"})
    assert project.stages == []

def test_template_read_failure_is_not_fatal():
    class BrokenSession:
        def query(self, *args, **kwargs):
            raise OperationalError("SELECT * FROM stage_templates", {}, Exception("no such table"))

    project = Project(name="Bodega")
    assert seed_stages_from_templates(BrokenSession(), project) == []
    assert project.stages == []

# --- Создание следующего этапа ---

def test_create_first_stage_gets_order_one(first_stage):
    assert first_stage.order_number == 1
    assert first_stage.is_completed is False

def test_create_stage_rejected_while_previous_incomplete(db: Session, empty_project, first_stage, test_user):
    with pytest.raises(StageSequenceError):
        create_stage(db, {"project_id": empty_project.id, "name": "Obra gruesa", "responsible_id": test_user.id})
    assert db.query(Stage).filter(Stage.project_id == empty_project.id).count() == 1

def test_create_stage_after_previous_completed(db: Session, empty_project, first_stage, test_user):
    complete_stage(db, first_stage.id)
    stage = create_stage(db, {"project_id": empty_project.id, "name": "Obra gruesa", "responsible_id": test_user.id})
    assert stage.order_number == first_stage.order_number + 1

def test_create_stage_validation_order(db: Session, empty_project, test_user):
    with pytest.raises(ProjectNotFound):
        create_stage(db, {"project_id": 9999, "name": "X", "responsible_id": 9999})
    with pytest.raises(UserNotFound):
        create_stage(db, {"project_id": empty_project.id, "name": "X", "responsible_id": 9999})
    # пустое имя проверяется после существования проекта и ответственного
    with pytest.raises(ProjectNotFound):
        create_stage(db, {"project_id": 9999, "name": "", "responsible_id": test_user.id})
    with pytest.raises(UserNotFound):
        create_stage(db, {"project_id": empty_project.id, "name": "", "responsible_id": 9999})
    with pytest.raises(StageValidationError):
        create_stage(db, {"project_id": empty_project.id, "name": "   ", "responsible_id": test_user.id})

# --- Переходы ---

def test_complete_stage_touches_only_that_stage(db: Session, two_templates, frozen_clock):
    project = create_project(db, {"name": "Casa Sur"})
    first, second = sorted(project.stages, key=lambda s: s.order_number)
    before = (second.order_number, second.responsible_id, second.start_date, second.estimated_end_date, second.completed_date)

    completed = complete_stage(db, first.id)
    assert completed.is_completed is True
    assert completed.completed_date == frozen_clock

    second = get_stage(db, second.id)
    after = (second.order_number, second.responsible_id, second.start_date, second.estimated_end_date, second.completed_date)
    assert after == before
    assert second.is_completed is False
    assert db.get(Project, project.id).status == "active"

def test_completing_last_stage_does_not_complete_project(db: Session, first_stage, empty_project):
    complete_stage(db, first_stage.id)
    assert db.get(Project, empty_project.id).status == "active"
    assert db.get(Project, empty_project.id).progress == 100

def test_uncomplete_clears_flag_and_date_together(db: Session, first_stage):
    complete_stage(db, first_stage.id)
    reopened = uncomplete_stage(db, first_stage.id)
    assert reopened.is_completed is False
    assert reopened.completed_date is None

def test_start_stage_only_once(db: Session, first_stage, frozen_clock):
    started = start_stage(db, first_stage.id)
    assert started.start_date == frozen_clock
    with pytest.raises(StageAlreadyStarted):
        start_stage(db, first_stage.id)

def test_start_missing_stage_reports_already_started(db: Session):
    with pytest.raises(StageAlreadyStarted, match="already started or does not exist"):
        start_stage(db, 424242)

def test_update_stage_fields_and_clear(db: Session, first_stage, other_user):
    updated = update_stage(db, first_stage.id, {
        "name": "Permisos municipales",
        "responsible_id": other_user.id,
        "intermediate_date": datetime(2024, 7, 1, 12, 0),
        "intermediate_date_note": "Visita inspector",
    })
    assert updated.name == "Permisos municipales"
    assert updated.responsible_id == other_user.id
    assert updated.intermediate_date_note == "Visita inspector"

    cleared = update_stage(db, first_stage.id, {"intermediate_date": None, "intermediate_date_note": None})
    assert cleared.intermediate_date is None
    assert cleared.intermediate_date_note is None

    with pytest.raises(UserNotFound):
        update_stage(db, first_stage.id, {"responsible_id": 9999})

# --- Перенумерация ---

def test_reorder_rewrites_order_numbers(db: Session, two_templates):
    project = create_project(db, {"name": "Casa Este"})
    first, second = sorted(project.stages, key=lambda s: s.order_number)
    result = reorder_stages(db, [
        {"stage_id": first.id, "order_number": 2},
        {"stage_id": second.id, "order_number": 1},
    ])
    assert [(s.id, s.order_number) for s in result] == [(second.id, 1), (first.id, 2)]
    assert [s.id for s in db.get(Project, project.id).stages] == [second.id, first.id]

def test_reorder_with_unknown_stage_writes_nothing(db: Session, first_stage):
    with pytest.raises(StageNotFound):
        reorder_stages(db, [
            {"stage_id": first_stage.id, "order_number": 5},
            {"stage_id": 9999, "order_number": 1},
        ])
    assert get_stage(db, first_stage.id).order_number == 1

def test_project_write_lock_is_reusable():
    with project_write_lock(1, 2, 1):
        pass
    with project_write_lock(2):
        pass

def test_deleting_project_drops_its_lock(db: Session, empty_project, first_stage):
    project_id = empty_project.id
    assert project_id in stage_crud._project_locks
    delete_project(db, project_id)
    assert project_id not in stage_crud._project_locks

# --- Теги ---

def test_attach_same_tag_twice_is_rejected(db: Session, first_stage):
    tag = create_tag(db, {"name": "urgente", "color": "#FF0000"})
    stage = attach_tag(db, first_stage.id, tag.id)
    assert [t.name for t in stage.tags] == ["urgente"]
    with pytest.raises(DuplicateTagAssignment):
        attach_tag(db, first_stage.id, tag.id)

def test_detach_tag(db: Session, first_stage):
    tag = create_tag(db, {"name": "revisar"})
    attach_tag(db, first_stage.id, tag.id)
    stage = detach_tag(db, first_stage.id, tag.id)
    assert stage.tags == []
    with pytest.raises(TagAssignmentNotFound):
        detach_tag(db, first_stage.id, tag.id)

# --- Список ---

def test_get_all_stages_hides_completed_projects(db: Session, two_templates):
    active = create_project(db, {"name": "Activo"})
    create_project(db, {"name": "Terminado", "status": "completed"})
    stages = get_all_stages(db)
    assert {s.project_id for s in stages} == {active.id}
    assert len(get_all_stages(db, {"include_completed_projects": True})) == 4

def test_get_all_stages_filters_and_sorts(db: Session, two_templates, test_user):
    project = create_project(db, {"name": "Casa Oeste"})
    tag = create_tag(db, {"name": "hormigón"})
    second = sorted(project.stages, key=lambda s: s.order_number)[1]
    attach_tag(db, second.id, tag.id)

    assert [s.id for s in get_all_stages(db, {"tag": "hormigón"})] == [second.id]
    assert [s.name for s in get_all_stages(db, {"responsible_id": test_user.id})] == ["Permisos"]
    assert [s.name for s in get_all_stages(db, {"search": "gruesa"})] == ["Obra gruesa"]
    assert [s.name for s in get_all_stages(db, sort_by="stage")] == ["Obra gruesa", "Permisos"]

# --- Удаление ---

def test_delete_project_removes_stages_comments_and_tag_links(db: Session, two_templates):
    project = create_project(db, {"name": "Demoler"})
    stage = project.stages[0]
    tag = create_tag(db, {"name": "demolición"})
    attach_tag(db, stage.id, tag.id)
    create_comment(db, {"stage_id": stage.id, "content": "Inicio", "author": "Pedro"})
    stage_ids = [s.id for s in project.stages]

    delete_project(db, project.id)

    assert db.query(Stage).filter(Stage.id.in_(stage_ids)).count() == 0
    assert db.query(Comment).filter(Comment.stage_id.in_(stage_ids)).count() == 0
    assert db.execute(select(func.count()).select_from(stage_tags)).scalar() == 0

def test_delete_stage_keeps_other_stages(db: Session, two_templates):
    project = create_project(db, {"name": "Casa Centro"})
    first, second = sorted(project.stages, key=lambda s: s.order_number)
    delete_stage(db, first.id)
    assert [s.id for s in db.get(Project, project.id).stages] == [second.id]
    with pytest.raises(StageNotFound):
        get_stage(db, first.id)
