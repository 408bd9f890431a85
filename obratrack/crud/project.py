# obratrack/crud/project.py
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError
from obratrack.core import clock
from obratrack.core.exceptions import (
    ProjectNotFound,
    ProjectValidationError,
    ClientNotFound,
    UserNotFound,
)
from obratrack.crud.stage import seed_stages_from_templates, release_project_lock
from obratrack.models.client import Client
from obratrack.models.project import Project, PROJECT_STATUSES
from obratrack.models.stage import Stage
from obratrack.models.user import User
from obratrack.services.derivation import filter_projects, sort_projects
import logging
from typing import Optional, List, Dict, Any

logger = logging.getLogger("ObraTrack.Projects")

def _validate_references(db: Session, data: dict) -> None:
    if data.get("client_id") is not None and db.get(Client, data["client_id"]) is None:
        raise ClientNotFound(f"Client with id={data['client_id']} not found.")
    if data.get("responsible_id") is not None and db.get(User, data["responsible_id"]) is None:
        raise UserNotFound(f"User with id={data['responsible_id']} not found.")
    if data.get("status") is not None and data["status"] not in PROJECT_STATUSES:
        raise ProjectValidationError(f"Unknown project status: {data['status']}")

def create_project(db: Session, data: dict) -> Project:
    """
    Создаёт объект и его этапы из глобального набора шаблонов.
    Проект и этапы фиксируются одной транзакцией.
    """
    name = (data.get("name") or "").strip()
    if not name:
        raise ProjectValidationError("Project name is required.")
    _validate_references(db, data)

    project = Project(
        name=name,
        description=data.get("description"),
        client_id=data.get("client_id"),
        responsible_id=data.get("responsible_id"),
        deadline=data.get("deadline"),
        status=data.get("status") or "active",
    )
    db.add(project)
    stages = seed_stages_from_templates(db, project)
    try:
        db.commit()
        db.refresh(project)
        logger.info(f"Created project '{project.name}' (ID: {project.id}) with {len(stages)} stages from templates")
        return project
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Exception during save: {e}")
        raise ProjectValidationError("Database error while creating project.")

def get_all_projects(
    db: Session,
    filters: Optional[Dict[str, Any]] = None,
    sort_by: str = "recent",
) -> List[Project]:
    """
    Список проектов. Без фильтра status завершённые проекты скрыты.
    has_completed_stages / has_pending_stages отбирают проекты
    с хотя бы одним завершённым / незавершённым этапом.
    """
    query = db.query(Project)
    filters = {k: v for k, v in (filters or {}).items() if v is not None}

    if "status" in filters:
        query = query.filter(Project.status == filters["status"])
    else:
        query = query.filter(Project.status != "completed")
    if "name" in filters:
        query = query.filter(Project.name.ilike(f"%{filters['name']}%"))
    if filters.get("has_completed_stages"):
        query = query.filter(Project.stages.any(Stage.is_completed.is_(True)))
    if filters.get("has_pending_stages"):
        query = query.filter(Project.stages.any(Stage.is_completed.is_(False)))

    projects = query.order_by(Project.id).all()
    return sort_projects(filter_projects(projects, filters), sort_by)

def get_project(db: Session, project_id: int) -> Project:
    project = db.get(Project, project_id)
    if not project:
        raise ProjectNotFound(f"Project with id={project_id} not found.")
    return project

def update_project(db: Session, project_id: int, data: dict) -> Project:
    """
    Обновляет проект. Статус меняется свободно, этапы не затрагиваются.
    """
    project = get_project(db, project_id)
    if "name" in data and not (data["name"] or "").strip():
        raise ProjectValidationError("Project name is required.")
    if "status" in data and data["status"] is None:
        raise ProjectValidationError("Project status cannot be empty.")
    _validate_references(db, data)
    pre_update_snapshot = {
        k: v for k, v in project.__dict__.items()
        if not k.startswith('_sa_')
    }
    updatable_fields = ["name", "description", "client_id", "responsible_id", "deadline", "status"]
    for field in updatable_fields:
        if field in data:
            setattr(project, field, data[field])

    project.updated_at = clock.now()

    try:
        db.commit()
        db.refresh(project)
        post_update_snapshot = {
            k: v for k, v in project.__dict__.items()
            if not k.startswith('_sa_')
        }
        changes = {
            k: (pre_update_snapshot[k], post_update_snapshot[k])
            for k in post_update_snapshot
            if k in pre_update_snapshot and pre_update_snapshot[k] != post_update_snapshot[k]
        }
        if changes:
            logger.info(f"Updated project {project.id} fields: {changes}")
        else:
            logger.info(f"Update called but no changes for project {project.id}")
        return project
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Failed to update project: {e}")
        raise ProjectValidationError("Database error while updating project.")

def delete_project(db: Session, project_id: int) -> None:
    """
    Удаляет проект вместе с этапами, их комментариями и связями с тегами.
    """
    project = get_project(db, project_id)
    db.delete(project)
    try:
        db.commit()
        release_project_lock(project_id)
        logger.info(f"Deleted project {project_id}")
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Failed to delete project {project_id}: {e}")
        raise ProjectValidationError("Database error while deleting project.")
