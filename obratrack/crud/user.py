# obratrack/crud/user.py
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from obratrack.models.user import User
from obratrack.models.stage import Stage
from obratrack.models.stage_template import StageTemplate
from obratrack.models.project import Project
from obratrack.core.exceptions import (
    UserNotFound,
    DuplicateUserEmail,
    UserInUseError,
    ValidationError,
)
import logging
from typing import Optional, List, Dict, Any

logger = logging.getLogger("ObraTrack.Users")

def create_user(db: Session, data: dict) -> User:
    """
    Создать сотрудника. Email уникален.
    """
    name = (data.get("name") or "").strip()
    email = (data.get("email") or "").strip()
    if not name or not email:
        raise ValidationError("User name and email are required.")
    if db.query(User).filter(User.email == email).first():
        raise DuplicateUserEmail(f"A user with email '{email}' already exists.")

    user = User(name=name, email=email, role=data.get("role"))
    db.add(user)
    try:
        db.commit()
        db.refresh(user)
        logger.info(f"Created user '{user.name}' (ID: {user.id})")
        return user
    except IntegrityError as e:
        db.rollback()
        logger.error(f"Integrity error creating user '{email}': {e}")
        raise DuplicateUserEmail(f"A user with email '{email}' already exists.")

def get_user(db: Session, user_id: int) -> User:
    user = db.get(User, user_id)
    if not user:
        raise UserNotFound(f"User with id={user_id} not found.")
    return user

def get_all_users(db: Session, filters: Optional[Dict[str, Any]] = None) -> List[User]:
    """
    Список сотрудников по имени; фильтры name/role — подстрока без учёта регистра.
    """
    filters = filters or {}
    query = db.query(User)
    if filters.get("name"):
        query = query.filter(User.name.ilike(f"%{filters['name']}%"))
    if filters.get("role"):
        query = query.filter(User.role.ilike(f"%{filters['role']}%"))
    return query.order_by(User.name).all()

def update_user(db: Session, user_id: int, data: dict) -> User:
    user = get_user(db, user_id)
    for field in ["name", "email"]:
        if field in data and not (data[field] or "").strip():
            raise ValidationError(f"User {field} cannot be empty.")
    if "email" in data and data["email"] and data["email"] != user.email:
        if db.query(User).filter(User.email == data["email"], User.id != user_id).first():
            raise DuplicateUserEmail(f"A user with email '{data['email']}' already exists.")
    for field in ["name", "email", "role"]:
        if field in data:
            setattr(user, field, data[field])
    try:
        db.commit()
        db.refresh(user)
        logger.info(f"Updated user {user.id}")
        return user
    except IntegrityError as e:
        db.rollback()
        logger.error(f"Integrity error updating user {user_id}: {e}")
        raise DuplicateUserEmail(f"A user with email '{data.get('email')}' already exists.")

def delete_user(db: Session, user_id: int) -> None:
    """
    Удалить сотрудника. Запрещено, пока он ответственный хотя бы за один этап;
    ссылки из шаблонов и проектов обнуляются.
    """
    user = get_user(db, user_id)
    assigned = db.query(Stage).filter(Stage.responsible_id == user_id).count()
    if assigned:
        raise UserInUseError(f"User {user_id} cannot be deleted: {assigned} stage(s) are assigned to them.")

    db.query(StageTemplate).filter(StageTemplate.default_responsible_id == user_id).update(
        {StageTemplate.default_responsible_id: None}, synchronize_session=False
    )
    db.query(Project).filter(Project.responsible_id == user_id).update(
        {Project.responsible_id: None}, synchronize_session=False
    )
    db.delete(user)
    try:
        db.commit()
        logger.info(f"Deleted user {user_id}")
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Failed to delete user {user_id}: {e}")
        raise UserInUseError(f"User {user_id} is still referenced and cannot be deleted.")
