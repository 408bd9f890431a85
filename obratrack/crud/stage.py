# obratrack/crud/stage.py
"""
Жизненный цикл этапов: заполнение из шаблонов, создание следующего этапа,
завершение / повторное открытие / старт, перенумерация и теги.
"""
from collections import defaultdict
from contextlib import ExitStack, contextmanager
from datetime import datetime, timedelta
import logging
import threading
from typing import Optional, List, Dict, Any, Iterable

from sqlalchemy import func, update
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from obratrack.core import clock
from obratrack.core.settings import settings
from obratrack.core.exceptions import (
    ProjectNotFound,
    StageNotFound,
    UserNotFound,
    StageSequenceError,
    StageAlreadyStarted,
    StageValidationError,
    DuplicateTagAssignment,
    TagAssignmentNotFound,
)
from obratrack.crud.tag import get_tag
from obratrack.models.project import Project
from obratrack.models.stage import Stage
from obratrack.models.stage_template import StageTemplate
from obratrack.models.tag import Tag
from obratrack.models.user import User
from obratrack.services.derivation import filter_stages, sort_stages

logger = logging.getLogger("ObraTrack.Stages")

# Фильтры, которые выполняются в SQL; остальные — в derivation
SQL_STAGE_FILTERS = ("project_id", "responsible_id", "is_completed", "tag")

# === Блокировки на проект ===

_locks_guard = threading.Lock()
_project_locks: Dict[int, threading.Lock] = defaultdict(threading.Lock)

@contextmanager
def project_write_lock(*project_ids: int):
    """
    Один писатель на проект для create_stage и reorder_stages.
    Блокировки берутся в порядке возрастания id, чтобы не было взаимоблокировок.
    """
    with _locks_guard:
        locks = [_project_locks[pid] for pid in sorted(set(project_ids))]
    with ExitStack() as stack:
        for lock in locks:
            stack.enter_context(lock)
        yield

def release_project_lock(project_id: int) -> None:
    """Убирает блокировку удалённого проекта из реестра."""
    with _locks_guard:
        _project_locks.pop(project_id, None)

def _end_read_transaction(db: Session) -> None:
    # SQLite держит SHARED-блокировку до конца транзакции: ждать блокировку
    # проекта с открытым чтением нельзя, иначе commit владельца упрётся в неё
    if db.in_transaction() and not (db.new or db.dirty or db.deleted):
        db.commit()

# === Заполнение из шаблонов ===

def build_stages_from_templates(templates: Iterable[StageTemplate], now: datetime) -> List[Stage]:
    """
    Строит этапы нового проекта по глобальному набору шаблонов.

    Первый этап начинается сейчас. Плановая дата окончания накапливается:
    now + сумма длительностей всех предыдущих шаблонов + своя длительность.
    Шаблон без длительности даёт этап без плановой даты, а в сумме считается нулём.
    """
    stages = []
    elapsed_days = 0
    for index, template in enumerate(templates):
        duration = template.estimated_duration_days
        estimated_end = None
        if duration is not None:
            estimated_end = now + timedelta(days=elapsed_days + duration)
        stages.append(Stage(
            template_id=template.id,
            name=template.name,
            order_number=template.order_number,
            responsible_id=template.default_responsible_id,
            start_date=now if index == 0 else None,
            estimated_end_date=estimated_end,
            is_completed=False,
        ))
        elapsed_days += duration or 0
    return stages

def seed_stages_from_templates(db: Session, project: Project) -> List[Stage]:
    """
    Добавляет в проект этапы из шаблонов (без commit).
    Ошибка чтения шаблонов не мешает созданию проекта: проект останется без этапов.
    """
    try:
        templates = (
            db.query(StageTemplate)
            .order_by(StageTemplate.order_number, StageTemplate.id)
            .all()
        )
    except SQLAlchemyError as e:
        logger.warning(f"Could not read stage templates, project '{project.name}' created without stages: {e}")
        return []

    stages = build_stages_from_templates(templates, clock.now())
    project.stages.extend(stages)
    return stages

# === CRUD ===

def _ensure_user(db: Session, user_id: Optional[int]) -> None:
    if user_id is not None and db.get(User, user_id) is None:
        raise UserNotFound(f"User with id={user_id} not found.")

def create_stage(db: Session, data: dict) -> Stage:
    """
    Создаёт следующий этап проекта. Предыдущий по порядку этап (если есть)
    должен быть завершён.
    """
    project_id = data.get("project_id")
    _end_read_transaction(db)
    with project_write_lock(project_id):
        if db.get(Project, project_id) is None:
            raise ProjectNotFound(f"Project with id={project_id} not found.")
        if data.get("responsible_id") is None:
            raise StageValidationError("Stage responsible is required.")
        _ensure_user(db, data["responsible_id"])
        name = (data.get("name") or "").strip()
        if not name:
            raise StageValidationError("Stage name is required.")

        max_order = (
            db.query(func.max(Stage.order_number))
            .filter(Stage.project_id == project_id)
            .scalar()
        ) or 0
        next_order = max_order + 1

        if next_order > 1:
            previous_pending = (
                db.query(Stage)
                .filter(
                    Stage.project_id == project_id,
                    Stage.order_number == next_order - 1,
                    Stage.is_completed.is_(False),
                )
                .first()
            )
            if previous_pending is not None:
                raise StageSequenceError(
                    f"Stage '{previous_pending.name}' (order {previous_pending.order_number}) must be completed first."
                )

        stage = Stage(
            project_id=project_id,
            name=name,
            responsible_id=data["responsible_id"],
            start_date=data.get("start_date"),
            estimated_end_date=data.get("estimated_end_date"),
            order_number=next_order,
            is_completed=False,
        )
        db.add(stage)
        try:
            db.commit()
            db.refresh(stage)
            logger.info(f"Created stage '{stage.name}' (ID: {stage.id}) at order {next_order} in project {project_id}")
            return stage
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Failed to create stage in project {project_id}: {e}")
            raise StageValidationError("Database error while creating stage.")

def get_stage(db: Session, stage_id: int) -> Stage:
    stage = db.get(Stage, stage_id)
    if not stage:
        raise StageNotFound(f"Stage with id={stage_id} not found.")
    return stage

def get_all_stages(
    db: Session,
    filters: Optional[Dict[str, Any]] = None,
    sort_by: str = "project",
) -> List[Stage]:
    """
    Список этапов с фильтрами. Этапы завершённых проектов скрыты,
    если не передан include_completed_projects.
    """
    filters = {k: v for k, v in (filters or {}).items() if v is not None}
    query = db.query(Stage).join(Project, Stage.project_id == Project.id)

    if not filters.get("include_completed_projects", False):
        query = query.filter(Project.status != "completed")
    if "project_id" in filters:
        query = query.filter(Stage.project_id == filters["project_id"])
    if "responsible_id" in filters:
        query = query.filter(Stage.responsible_id == filters["responsible_id"])
    if "is_completed" in filters:
        query = query.filter(Stage.is_completed.is_(bool(filters["is_completed"])))
    if "tag" in filters:
        query = query.filter(Stage.tags.any(Tag.name == filters["tag"]))

    stages = query.order_by(Stage.project_id, Stage.order_number, Stage.id).all()
    remaining = {k: v for k, v in filters.items() if k not in SQL_STAGE_FILTERS}
    remaining.setdefault("require_started", settings.NEEDS_DATA_REQUIRE_STARTED)
    return sort_stages(filter_stages(stages, remaining), sort_by)

def update_stage(db: Session, stage_id: int, data: dict) -> Stage:
    """
    Правка полей этапа. Явный None очищает дату или ответственного.
    """
    stage = get_stage(db, stage_id)
    if "name" in data:
        name = (data["name"] or "").strip()
        if not name:
            raise StageValidationError("Stage name cannot be empty.")
        data["name"] = name
    if "responsible_id" in data:
        _ensure_user(db, data["responsible_id"])

    updatable_fields = [
        "name", "responsible_id", "start_date", "estimated_end_date",
        "completed_date", "intermediate_date", "intermediate_date_note",
    ]
    for field in updatable_fields:
        if field in data:
            setattr(stage, field, data[field])
    try:
        db.commit()
        db.refresh(stage)
        logger.info(f"Updated stage {stage.id} fields: {[f for f in updatable_fields if f in data]}")
        return stage
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Failed to update stage {stage_id}: {e}")
        raise StageValidationError("Database error while updating stage.")

def delete_stage(db: Session, stage_id: int) -> None:
    stage = get_stage(db, stage_id)
    db.delete(stage)
    try:
        db.commit()
        logger.info(f"Deleted stage {stage_id}")
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Failed to delete stage {stage_id}: {e}")
        raise StageValidationError("Database error while deleting stage.")

# === Переходы состояния ===

def complete_stage(db: Session, stage_id: int) -> Stage:
    """
    Завершить этап. Следующий этап не создаётся и статус проекта не меняется.
    """
    stage = get_stage(db, stage_id)
    stage.is_completed = True
    stage.completed_date = clock.now()
    try:
        db.commit()
        db.refresh(stage)
        logger.info(f"Completed stage {stage.id} in project {stage.project_id}")
        return stage
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Failed to complete stage {stage_id}: {e}")
        raise StageValidationError("Database error while completing stage.")

def uncomplete_stage(db: Session, stage_id: int) -> Stage:
    """
    Открыть этап заново: флаг и дата завершения сбрасываются вместе.
    """
    stage = get_stage(db, stage_id)
    stage.is_completed = False
    stage.completed_date = None
    try:
        db.commit()
        db.refresh(stage)
        logger.info(f"Reopened stage {stage.id} in project {stage.project_id}")
        return stage
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Failed to reopen stage {stage_id}: {e}")
        raise StageValidationError("Database error while reopening stage.")

def start_stage(db: Session, stage_id: int) -> Stage:
    """
    Проставить start_date, только если он ещё пуст. Условный UPDATE:
    ноль затронутых строк значит "уже начат или не существует".
    """
    try:
        result = db.execute(
            update(Stage)
            .where(Stage.id == stage_id, Stage.start_date.is_(None))
            .values(start_date=clock.now())
        )
        if result.rowcount == 0:
            db.rollback()
            raise StageAlreadyStarted(f"Stage with id={stage_id} already started or does not exist.")
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Failed to start stage {stage_id}: {e}")
        raise StageValidationError("Database error while starting stage.")

    stage = get_stage(db, stage_id)
    db.refresh(stage)
    logger.info(f"Started stage {stage.id} in project {stage.project_id}")
    return stage

def reorder_stages(db: Session, items: List[Dict[str, int]]) -> List[Stage]:
    """
    Применяет пары (stage_id, order_number) одной транзакцией.
    Последовательность и принадлежность проекту не проверяются;
    неизвестный этап отменяет всю пачку.
    """
    stage_ids = [item["stage_id"] for item in items]
    stages = {s.id: s for s in db.query(Stage).filter(Stage.id.in_(stage_ids)).all()}
    missing = [sid for sid in stage_ids if sid not in stages]
    if missing:
        raise StageNotFound(f"Stages not found: {missing}")

    project_ids = [s.project_id for s in stages.values()]
    _end_read_transaction(db)
    with project_write_lock(*project_ids):
        for item in items:
            stages[item["stage_id"]].order_number = item["order_number"]
        try:
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Failed to reorder stages {stage_ids}: {e}")
            raise StageValidationError("Database error while reordering stages.")

    logger.info(f"Reordered stages: {[(i['stage_id'], i['order_number']) for i in items]}")
    return sorted(stages.values(), key=lambda s: (s.project_id, s.order_number, s.id))

# === Теги ===

def attach_tag(db: Session, stage_id: int, tag_id: int) -> Stage:
    stage = get_stage(db, stage_id)
    tag = get_tag(db, tag_id)
    if tag in stage.tags:
        raise DuplicateTagAssignment(f"Tag '{tag.name}' is already assigned to stage {stage_id}.")
    stage.tags.append(tag)
    try:
        db.commit()
        db.refresh(stage)
        logger.info(f"Attached tag {tag_id} to stage {stage_id}")
        return stage
    except IntegrityError as e:
        db.rollback()
        logger.error(f"Integrity error attaching tag {tag_id} to stage {stage_id}: {e}")
        raise DuplicateTagAssignment(f"Tag {tag_id} is already assigned to stage {stage_id}.")

def detach_tag(db: Session, stage_id: int, tag_id: int) -> Stage:
    stage = get_stage(db, stage_id)
    tag = next((t for t in stage.tags if t.id == tag_id), None)
    if tag is None:
        raise TagAssignmentNotFound(f"Tag {tag_id} is not assigned to stage {stage_id}.")
    stage.tags.remove(tag)
    try:
        db.commit()
        db.refresh(stage)
        logger.info(f"Detached tag {tag_id} from stage {stage_id}")
        return stage
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Failed to detach tag {tag_id} from stage {stage_id}: {e}")
        raise StageValidationError("Database error while detaching tag.")
