# obratrack/dependencies.py

from typing import Generator
from fastapi import Depends, HTTPException, status
from sqlalchemy.orm import Session
from obratrack.database import SessionLocal
from obratrack.models.project import Project as ProjectModel
from obratrack.models.stage import Stage as StageModel
from obratrack.crud.project import get_project as get_project_crud
from obratrack.crud.stage import get_stage as get_stage_crud
from obratrack.core.exceptions import ProjectNotFound, StageNotFound

def get_db() -> Generator[Session, None, None]:
    """
    Создает и возвращает сессию базы данных, гарантирует закрытие после использования.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

def get_project_or_404(
    project_id: int,
    db: Session = Depends(get_db),
) -> ProjectModel:
    """
    Получить проект по ID или выдать 404.
    """
    try:
        return get_project_crud(db, project_id)
    except ProjectNotFound:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Project not found")

def get_stage_or_404(
    stage_id: int,
    db: Session = Depends(get_db),
) -> StageModel:
    """
    Получить этап по ID или выдать 404.
    """
    try:
        return get_stage_crud(db, stage_id)
    except StageNotFound:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Stage not found")
