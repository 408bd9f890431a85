#obratrack/api/client.py
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List
from obratrack.schemas.client import ClientCreate, ClientUpdate, ClientRead
from obratrack.crud.client import (
    create_client,
    get_client,
    get_all_clients,
    update_client,
    delete_client,
)
from obratrack.dependencies import get_db
from obratrack.schemas.response import SuccessResponse
from obratrack.core.exceptions import ClientNotFound, ValidationError

router = APIRouter(prefix="/clients", tags=["Clients"])

@router.post("/", response_model=ClientRead, status_code=status.HTTP_201_CREATED)
def create_new_client(data: ClientCreate, db: Session = Depends(get_db)):
    try:
        return create_client(db, data.model_dump())
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

@router.get("/", response_model=List[ClientRead])
def list_clients(db: Session = Depends(get_db)):
    return get_all_clients(db)

@router.get("/{client_id}", response_model=ClientRead)
def get_one_client(client_id: int, db: Session = Depends(get_db)):
    try:
        return get_client(db, client_id)
    except ClientNotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

@router.put("/{client_id}", response_model=ClientRead)
def update_one_client(client_id: int, data: ClientUpdate, db: Session = Depends(get_db)):
    try:
        return update_client(db, client_id, data.model_dump(exclude_unset=True))
    except ClientNotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

@router.delete("/{client_id}", response_model=SuccessResponse)
def delete_one_client(client_id: int, db: Session = Depends(get_db)):
    """
    Удалить заказчика; его объекты остаются без заказчика.
    """
    try:
        delete_client(db, client_id)
        return SuccessResponse(result=client_id, detail="Client deleted")
    except ClientNotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
