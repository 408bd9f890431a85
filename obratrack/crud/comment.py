# obratrack/crud/comment.py
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError
from obratrack.models.comment import Comment
from obratrack.models.stage import Stage
from obratrack.core.exceptions import CommentNotFound, StageNotFound, ValidationError
import logging
from typing import List

logger = logging.getLogger("ObraTrack.Comments")

def create_comment(db: Session, data: dict) -> Comment:
    """
    Добавить комментарий к существующему этапу.
    """
    content = (data.get("content") or "").strip()
    author = (data.get("author") or "").strip()
    if not content or not author:
        raise ValidationError("Comment content and author are required.")
    stage_id = data.get("stage_id")
    if db.get(Stage, stage_id) is None:
        raise StageNotFound(f"Stage with id={stage_id} not found.")

    comment = Comment(stage_id=stage_id, content=content, author=author)
    db.add(comment)
    try:
        db.commit()
        db.refresh(comment)
        logger.info(f"Created comment {comment.id} on stage {stage_id}")
        return comment
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Failed to create comment: {e}")
        raise ValidationError("Database error while creating comment.")

def get_comment(db: Session, comment_id: int) -> Comment:
    comment = db.get(Comment, comment_id)
    if not comment:
        raise CommentNotFound(f"Comment with id={comment_id} not found.")
    return comment

def get_all_comments(db: Session) -> List[Comment]:
    return db.query(Comment).order_by(Comment.created_at.desc(), Comment.id.desc()).all()

def get_stage_comments(db: Session, stage_id: int) -> List[Comment]:
    if db.get(Stage, stage_id) is None:
        raise StageNotFound(f"Stage with id={stage_id} not found.")
    return (
        db.query(Comment)
        .filter(Comment.stage_id == stage_id)
        .order_by(Comment.created_at.desc(), Comment.id.desc())
        .all()
    )

def update_comment(db: Session, comment_id: int, data: dict) -> Comment:
    comment = get_comment(db, comment_id)
    for field in ["content", "author"]:
        if field in data:
            value = (data[field] or "").strip()
            if not value:
                raise ValidationError(f"Comment {field} cannot be empty.")
            setattr(comment, field, value)
    try:
        db.commit()
        db.refresh(comment)
        logger.info(f"Updated comment {comment.id}")
        return comment
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Failed to update comment {comment_id}: {e}")
        raise ValidationError("Database error while updating comment.")

def delete_comment(db: Session, comment_id: int) -> None:
    comment = get_comment(db, comment_id)
    db.delete(comment)
    try:
        db.commit()
        logger.info(f"Deleted comment {comment_id}")
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Failed to delete comment {comment_id}: {e}")
        raise ValidationError("Database error while deleting comment.")
