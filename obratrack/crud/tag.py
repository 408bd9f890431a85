# obratrack/crud/tag.py
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from obratrack.models.tag import Tag
from obratrack.core.exceptions import TagNotFound, DuplicateTagName, ValidationError
import logging
from typing import List

logger = logging.getLogger("ObraTrack.Tags")

def create_tag(db: Session, data: dict) -> Tag:
    name = (data.get("name") or "").strip()
    if not name:
        raise ValidationError("Tag name is required.")
    if db.query(Tag).filter(Tag.name == name).first():
        raise DuplicateTagName(f"Tag '{name}' already exists.")
    tag = Tag(name=name, color=data.get("color"))
    db.add(tag)
    try:
        db.commit()
        db.refresh(tag)
        logger.info(f"Created tag '{tag.name}' (ID: {tag.id})")
        return tag
    except IntegrityError as e:
        db.rollback()
        logger.error(f"Integrity error creating tag '{name}': {e}")
        raise DuplicateTagName(f"Tag '{name}' already exists.")

def get_tag(db: Session, tag_id: int) -> Tag:
    tag = db.get(Tag, tag_id)
    if not tag:
        raise TagNotFound(f"Tag with id={tag_id} not found.")
    return tag

def get_all_tags(db: Session) -> List[Tag]:
    return db.query(Tag).order_by(Tag.name).all()

def update_tag(db: Session, tag_id: int, data: dict) -> Tag:
    tag = get_tag(db, tag_id)
    new_name = (data.get("name") or "").strip()
    if "name" in data and not new_name:
        raise ValidationError("Tag name cannot be empty.")
    if new_name and new_name != tag.name:
        if db.query(Tag).filter(Tag.name == new_name, Tag.id != tag_id).first():
            raise DuplicateTagName(f"Tag '{new_name}' already exists.")
        tag.name = new_name
    if "color" in data:
        tag.color = data["color"]
    try:
        db.commit()
        db.refresh(tag)
        logger.info(f"Updated tag {tag.id}")
        return tag
    except IntegrityError as e:
        db.rollback()
        logger.error(f"Integrity error updating tag {tag_id}: {e}")
        raise DuplicateTagName(f"Tag '{new_name}' already exists.")

def delete_tag(db: Session, tag_id: int) -> None:
    """
    Удалить тег вместе со всеми его назначениями этапам.
    """
    tag = get_tag(db, tag_id)
    db.delete(tag)
    try:
        db.commit()
        logger.info(f"Deleted tag {tag_id}")
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Failed to delete tag {tag_id}: {e}")
        raise ValidationError("Database error while deleting tag.")
