#obratrack/api/stage_template.py
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List
from obratrack.schemas.stage_template import StageTemplateCreate, StageTemplateUpdate, StageTemplateRead
from obratrack.crud.stage_template import (
    create_stage_template,
    get_stage_template,
    get_ordered_templates,
    update_stage_template,
    delete_stage_template,
)
from obratrack.dependencies import get_db
from obratrack.schemas.response import SuccessResponse
from obratrack.core.exceptions import NotFoundError, ValidationError

router = APIRouter(prefix="/stage-templates", tags=["Stage templates"])

@router.post("/", response_model=StageTemplateRead, status_code=status.HTTP_201_CREATED)
def create_new_stage_template(data: StageTemplateCreate, db: Session = Depends(get_db)):
    """
    Добавить шаблон в глобальный набор (используется при создании объектов).
    """
    try:
        return create_stage_template(db, data.model_dump())
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

@router.get("/", response_model=List[StageTemplateRead])
def list_stage_templates(db: Session = Depends(get_db)):
    return get_ordered_templates(db)

@router.get("/{template_id}", response_model=StageTemplateRead)
def get_one_stage_template(template_id: int, db: Session = Depends(get_db)):
    try:
        return get_stage_template(db, template_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

@router.put("/{template_id}", response_model=StageTemplateRead)
def update_one_stage_template(template_id: int, data: StageTemplateUpdate, db: Session = Depends(get_db)):
    try:
        return update_stage_template(db, template_id, data.model_dump(exclude_unset=True))
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

@router.delete("/{template_id}", response_model=SuccessResponse)
def delete_one_stage_template(template_id: int, db: Session = Depends(get_db)):
    try:
        delete_stage_template(db, template_id)
        return SuccessResponse(result=template_id, detail="Stage template deleted")
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
