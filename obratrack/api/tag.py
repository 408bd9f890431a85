#obratrack/api/tag.py
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List
from obratrack.schemas.tag import TagCreate, TagUpdate, TagRead
from obratrack.crud.tag import (
    create_tag,
    get_tag,
    get_all_tags,
    update_tag,
    delete_tag,
)
from obratrack.dependencies import get_db
from obratrack.schemas.response import SuccessResponse
from obratrack.core.exceptions import DuplicateTagName, TagNotFound, ValidationError

router = APIRouter(prefix="/tags", tags=["Tags"])

@router.post("/", response_model=TagRead, status_code=status.HTTP_201_CREATED)
def create_new_tag(data: TagCreate, db: Session = Depends(get_db)):
    try:
        return create_tag(db, data.model_dump())
    except DuplicateTagName as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

@router.get("/", response_model=List[TagRead])
def list_tags(db: Session = Depends(get_db)):
    """
    Все теги с числом этапов, на которые они назначены.
    """
    return get_all_tags(db)

@router.get("/{tag_id}", response_model=TagRead)
def get_one_tag(tag_id: int, db: Session = Depends(get_db)):
    try:
        return get_tag(db, tag_id)
    except TagNotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

@router.put("/{tag_id}", response_model=TagRead)
def update_one_tag(tag_id: int, data: TagUpdate, db: Session = Depends(get_db)):
    try:
        return update_tag(db, tag_id, data.model_dump(exclude_unset=True))
    except TagNotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except DuplicateTagName as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

@router.delete("/{tag_id}", response_model=SuccessResponse)
def delete_one_tag(tag_id: int, db: Session = Depends(get_db)):
    try:
        delete_tag(db, tag_id)
        return SuccessResponse(result=tag_id, detail="Tag deleted")
    except TagNotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
