# obratrack/crud/stage_template.py
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError
from obratrack.models.stage_template import StageTemplate
from obratrack.models.stage import Stage
from obratrack.models.user import User
from obratrack.core.exceptions import StageTemplateNotFound, UserNotFound, ValidationError
import logging
from typing import List

logger = logging.getLogger("ObraTrack.StageTemplates")

def _ensure_user(db: Session, user_id) -> None:
    if user_id is not None and db.get(User, user_id) is None:
        raise UserNotFound(f"User with id={user_id} not found.")

def create_stage_template(db: Session, data: dict) -> StageTemplate:
    """
    Создать шаблон этапа в глобальном наборе.
    """
    name = (data.get("name") or "").strip()
    if not name or data.get("order_number") is None:
        raise ValidationError("Template name and order_number are required.")
    _ensure_user(db, data.get("default_responsible_id"))

    template = StageTemplate(
        name=name,
        order_number=data["order_number"],
        default_responsible_id=data.get("default_responsible_id"),
        estimated_duration_days=data.get("estimated_duration_days"),
    )
    db.add(template)
    try:
        db.commit()
        db.refresh(template)
        logger.info(f"Created stage template '{template.name}' (ID: {template.id}, order {template.order_number})")
        return template
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Failed to create stage template '{name}': {e}")
        raise ValidationError("Database error while creating stage template.")

def get_stage_template(db: Session, template_id: int) -> StageTemplate:
    template = db.get(StageTemplate, template_id)
    if not template:
        raise StageTemplateNotFound(f"Stage template with id={template_id} not found.")
    return template

def get_ordered_templates(db: Session) -> List[StageTemplate]:
    """
    Глобальный набор шаблонов в порядке order_number (при равенстве — по id).
    """
    return db.query(StageTemplate).order_by(StageTemplate.order_number, StageTemplate.id).all()

def update_stage_template(db: Session, template_id: int, data: dict) -> StageTemplate:
    template = get_stage_template(db, template_id)
    if "name" in data and not (data["name"] or "").strip():
        raise ValidationError("Template name cannot be empty.")
    if "order_number" in data and data["order_number"] is None:
        raise ValidationError("Template order_number cannot be empty.")
    if "default_responsible_id" in data:
        _ensure_user(db, data["default_responsible_id"])
    for field in ["name", "order_number", "default_responsible_id", "estimated_duration_days"]:
        if field in data:
            setattr(template, field, data[field])
    try:
        db.commit()
        db.refresh(template)
        logger.info(f"Updated stage template {template.id}")
        return template
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Failed to update stage template {template_id}: {e}")
        raise ValidationError("Database error while updating stage template.")

def delete_stage_template(db: Session, template_id: int) -> None:
    """
    Удалить шаблон; уже созданные этапы остаются, теряя ссылку на шаблон.
    """
    template = get_stage_template(db, template_id)
    db.query(Stage).filter(Stage.template_id == template_id).update(
        {Stage.template_id: None}, synchronize_session=False
    )
    db.delete(template)
    try:
        db.commit()
        logger.info(f"Deleted stage template {template_id}")
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Failed to delete stage template {template_id}: {e}")
        raise ValidationError("Database error while deleting stage template.")
