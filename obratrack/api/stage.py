#obratrack/api/stage.py
import logging
from datetime import date
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session
from typing import List, Literal, Optional

from obratrack.schemas.stage import (
    StageCreate, StageUpdate, StageReorder, StageRead, StageDetail
)
from obratrack.schemas.tag import StageTagAssign
from obratrack.schemas.comment import CommentRead
from obratrack.crud.stage import (
    create_stage,
    get_all_stages,
    update_stage,
    delete_stage,
    complete_stage,
    uncomplete_stage,
    start_stage,
    reorder_stages,
    attach_tag,
    detach_tag,
)
from obratrack.crud.comment import get_stage_comments
from obratrack.dependencies import get_db, get_stage_or_404
from obratrack.schemas.response import ErrorResponse, SuccessResponse
from obratrack.models.stage import Stage as StageModel
from obratrack.core.exceptions import ConflictError, NotFoundError, ValidationError

logger = logging.getLogger("ObraTrack.StagesAPI")

router = APIRouter(
    prefix="/stages",
    tags=["Stages"],
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)

StageSort = Literal["project", "stage", "responsible", "deadline", "intermediate_date", "status"]

@router.post("/", response_model=StageRead, status_code=status.HTTP_201_CREATED)
def create_new_stage(
    data: StageCreate,
    db: Session = Depends(get_db),
):
    """
    Создать следующий этап проекта. Предыдущий этап должен быть завершён.
    """
    try:
        return create_stage(db, data.model_dump())
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ConflictError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except Exception as e:
        logger.error(f"Error creating stage: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Internal error during stage creation.")

@router.get("/", response_model=List[StageRead])
def list_stages(
    project_id: Optional[int] = Query(None),
    responsible_id: Optional[int] = Query(None),
    client_id: Optional[int] = Query(None),
    is_completed: Optional[bool] = Query(None),
    tag: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    start_date_from: Optional[date] = Query(None),
    start_date_to: Optional[date] = Query(None),
    estimated_end_date_from: Optional[date] = Query(None),
    estimated_end_date_to: Optional[date] = Query(None),
    needs_data: Optional[bool] = Query(None),
    require_started: Optional[bool] = Query(None),
    include_completed_projects: bool = Query(False),
    sort_by: StageSort = Query("project"),
    db: Session = Depends(get_db),
):
    """
    Этапы всех активных объектов с фильтрами и сортировкой.
    """
    filters = {
        "project_id": project_id,
        "responsible_id": responsible_id,
        "client_id": client_id,
        "is_completed": is_completed,
        "tag": tag,
        "search": search,
        "start_date_from": start_date_from,
        "start_date_to": start_date_to,
        "estimated_end_date_from": estimated_end_date_from,
        "estimated_end_date_to": estimated_end_date_to,
        "needs_data": needs_data,
        "require_started": require_started,
        "include_completed_projects": include_completed_projects,
    }
    try:
        return get_all_stages(db, filters=filters, sort_by=sort_by)
    except Exception as e:
        logger.error(f"Failed to list stages: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to fetch stages.")

# /reorder объявлен раньше /{stage_id}
@router.put("/reorder", response_model=List[StageRead])
def reorder_project_stages(
    data: StageReorder,
    db: Session = Depends(get_db),
):
    """
    Перенумеровать этапы. Правило "предыдущий завершён" не проверяется.
    """
    try:
        return reorder_stages(db, [item.model_dump() for item in data.items])
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except Exception as e:
        logger.error(f"Error reordering stages: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Internal error during stage reorder.")

@router.get("/{stage_id}", response_model=StageDetail)
def get_one_stage(
    stage: StageModel = Depends(get_stage_or_404),
):
    return stage

@router.put("/{stage_id}", response_model=StageRead)
def update_one_stage(
    data: StageUpdate,
    stage: StageModel = Depends(get_stage_or_404),
    db: Session = Depends(get_db),
):
    try:
        return update_stage(db, stage.id, data.model_dump(exclude_unset=True))
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except Exception as e:
        logger.error(f"Error updating stage {stage.id}: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Internal error during stage update.")

@router.delete("/{stage_id}", response_model=SuccessResponse)
def delete_one_stage(
    stage: StageModel = Depends(get_stage_or_404),
    db: Session = Depends(get_db),
):
    stage_id = stage.id
    try:
        delete_stage(db, stage_id)
        return SuccessResponse(result=stage_id, detail="Stage deleted")
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except Exception as e:
        logger.error(f"Error deleting stage {stage_id}: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Internal error during stage deletion.")

@router.put("/{stage_id}/complete", response_model=StageRead)
def complete_one_stage(
    stage: StageModel = Depends(get_stage_or_404),
    db: Session = Depends(get_db),
):
    """
    Завершить этап. Следующий этап автоматически не создаётся.
    """
    try:
        return complete_stage(db, stage.id)
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

@router.put("/{stage_id}/uncomplete", response_model=StageRead)
def uncomplete_one_stage(
    stage: StageModel = Depends(get_stage_or_404),
    db: Session = Depends(get_db),
):
    """
    Открыть этап заново.
    """
    try:
        return uncomplete_stage(db, stage.id)
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

@router.put("/{stage_id}/start", response_model=StageRead)
def start_one_stage(
    stage_id: int,
    db: Session = Depends(get_db),
):
    """
    Начать этап; повторный старт и несуществующий этап дают 409.
    """
    try:
        return start_stage(db, stage_id)
    except ConflictError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

@router.post("/{stage_id}/tags", response_model=StageRead)
def attach_stage_tag(
    stage_id: int,
    data: StageTagAssign,
    db: Session = Depends(get_db),
):
    try:
        return attach_tag(db, stage_id, data.tag_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ConflictError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))

@router.delete("/{stage_id}/tags/{tag_id}", response_model=StageRead)
def detach_stage_tag(
    stage_id: int,
    tag_id: int,
    db: Session = Depends(get_db),
):
    try:
        return detach_tag(db, stage_id, tag_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

@router.get("/{stage_id}/comments", response_model=List[CommentRead])
def list_stage_comments(
    stage_id: int,
    db: Session = Depends(get_db),
):
    """
    Комментарии этапа, новые сверху. StageNotFound обрабатывается в main.
    """
    return get_stage_comments(db, stage_id)
