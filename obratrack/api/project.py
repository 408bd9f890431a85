#obratrack/api/project.py
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session
from typing import List, Literal, Optional
from obratrack.schemas.project import (
    ProjectCreate, ProjectRead, ProjectUpdate, ProjectSummary, ProjectStatus
)
from obratrack.crud.project import (
    create_project,
    get_all_projects,
    update_project,
    delete_project,
)
from obratrack.dependencies import get_db, get_project_or_404
from obratrack.schemas.response import ErrorResponse, SuccessResponse
from obratrack.core.exceptions import NotFoundError, ProjectValidationError
from obratrack.models.project import Project as ProjectModel

import logging

router = APIRouter(prefix="/projects", tags=["Projects"], responses={404: {"model": ErrorResponse}})
logger = logging.getLogger("ObraTrack.ProjectsAPI")

@router.post("/", response_model=ProjectRead, status_code=status.HTTP_201_CREATED)
def create_new_project(
    data: ProjectCreate,
    db: Session = Depends(get_db),
):
    """
    Создать объект. Этапы создаются из текущего набора шаблонов.
    """
    try:
        return create_project(db, data.model_dump())
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ProjectValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except Exception as e:
        logger.error(f"Unexpected error in create_new_project: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="An unexpected error occurred while creating the project.")

@router.get("/", response_model=List[ProjectSummary])
def list_projects(
    name: Optional[str] = Query(None),
    project_status: Optional[ProjectStatus] = Query(None, alias="status"),
    has_completed_stages: Optional[bool] = Query(None),
    has_pending_stages: Optional[bool] = Query(None),
    search: Optional[str] = Query(None),
    client_id: Optional[int] = Query(None),
    deadline_filter: Optional[Literal["today", "week", "month", "overdue", "all"]] = Query(None),
    sort_by: Literal["name", "deadline", "progress", "recent"] = Query("recent"),
    db: Session = Depends(get_db),
):
    """
    Список объектов с агрегатами по этапам.
    """
    filters = {
        "name": name,
        "status": project_status,
        "has_completed_stages": has_completed_stages,
        "has_pending_stages": has_pending_stages,
        "search": search,
        "client_id": client_id,
        "deadline_filter": deadline_filter,
    }
    filters = {k: v for k, v in filters.items() if v is not None}
    try:
        return get_all_projects(db, filters=filters, sort_by=sort_by)
    except Exception as e:
        logger.error(f"Failed to list projects: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to fetch projects.")

@router.get("/{project_id}", response_model=ProjectRead)
def get_one_project(
    project: ProjectModel = Depends(get_project_or_404),
):
    """
    Объект с упорядоченными этапами (ответственный, теги, последние комментарии).
    """
    return project

@router.put("/{project_id}", response_model=ProjectRead)
def update_one_project(
    data: ProjectUpdate,
    project: ProjectModel = Depends(get_project_or_404),
    db: Session = Depends(get_db),
):
    try:
        return update_project(db, project.id, data.model_dump(exclude_unset=True))
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ProjectValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to update project {project.id}: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="An unexpected error occurred during project update.")

@router.delete("/{project_id}", response_model=SuccessResponse)
def delete_one_project(
    project: ProjectModel = Depends(get_project_or_404),
    db: Session = Depends(get_db),
):
    """
    Удалить объект вместе с этапами и комментариями.
    """
    project_id = project.id
    try:
        delete_project(db, project_id)
        return SuccessResponse(result=project_id, detail="Project deleted")
    except ProjectValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to delete project {project_id}: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="An unexpected error occurred during project deletion.")
