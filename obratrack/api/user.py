#obratrack/api/user.py
from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session
from typing import List, Optional
from obratrack.schemas.user import UserCreate, UserUpdate, UserRead
from obratrack.crud.user import (
    create_user,
    get_user,
    get_all_users,
    update_user,
    delete_user,
)
from obratrack.dependencies import get_db
from obratrack.schemas.response import SuccessResponse
from obratrack.core.exceptions import ConflictError, UserNotFound, ValidationError

router = APIRouter(prefix="/users", tags=["Users"])

@router.post("/", response_model=UserRead, status_code=status.HTTP_201_CREATED)
def register_user(
    data: UserCreate,
    db: Session = Depends(get_db),
):
    """
    Добавить сотрудника.
    """
    try:
        return create_user(db, data.model_dump())
    except ConflictError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

@router.get("/", response_model=List[UserRead])
def list_users(
    name: Optional[str] = Query(None),
    role: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    filters = {"name": name, "role": role}
    return get_all_users(db, {k: v for k, v in filters.items() if v is not None})

@router.get("/{user_id}", response_model=UserRead)
def get_user_profile(
    user_id: int,
    db: Session = Depends(get_db),
):
    try:
        return get_user(db, user_id)
    except UserNotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

@router.put("/{user_id}", response_model=UserRead)
def update_user_profile(
    user_id: int,
    data: UserUpdate,
    db: Session = Depends(get_db),
):
    try:
        return update_user(db, user_id, data.model_dump(exclude_unset=True))
    except UserNotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ConflictError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

@router.delete("/{user_id}", response_model=SuccessResponse)
def delete_user_profile(
    user_id: int,
    db: Session = Depends(get_db),
):
    """
    Удалить сотрудника. Если он ответственный за этапы — 409.
    """
    try:
        delete_user(db, user_id)
        return SuccessResponse(result=user_id, detail="User deleted")
    except UserNotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ConflictError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
