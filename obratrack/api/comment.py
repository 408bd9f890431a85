#obratrack/api/comment.py
import logging
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List
from obratrack.schemas.comment import CommentCreate, CommentUpdate, CommentRead
from obratrack.crud.comment import (
    create_comment,
    get_comment,
    get_all_comments,
    update_comment,
    delete_comment,
)
from obratrack.dependencies import get_db
from obratrack.schemas.response import SuccessResponse
from obratrack.core.exceptions import NotFoundError, ValidationError

logger = logging.getLogger("ObraTrack.CommentsAPI")

router = APIRouter(prefix="/comments", tags=["Comments"])

@router.post("/", response_model=CommentRead, status_code=status.HTTP_201_CREATED)
def create_new_comment(data: CommentCreate, db: Session = Depends(get_db)):
    """
    Добавить комментарий к этапу. Автор — свободный текст.
    """
    try:
        return create_comment(db, data.model_dump())
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except Exception as e:
        logger.error(f"Error creating comment: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Internal error during comment creation.")

@router.get("/", response_model=List[CommentRead])
def list_comments(db: Session = Depends(get_db)):
    return get_all_comments(db)

@router.get("/{comment_id}", response_model=CommentRead)
def get_one_comment(comment_id: int, db: Session = Depends(get_db)):
    try:
        return get_comment(db, comment_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

@router.put("/{comment_id}", response_model=CommentRead)
def update_one_comment(comment_id: int, data: CommentUpdate, db: Session = Depends(get_db)):
    try:
        return update_comment(db, comment_id, data.model_dump(exclude_unset=True))
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

@router.delete("/{comment_id}", response_model=SuccessResponse)
def delete_one_comment(comment_id: int, db: Session = Depends(get_db)):
    try:
        delete_comment(db, comment_id)
        return SuccessResponse(result=comment_id, detail="Comment deleted")
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
