# obratrack/crud/client.py
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError
from obratrack.models.client import Client
from obratrack.models.project import Project
from obratrack.core.exceptions import ClientNotFound, ValidationError
import logging
from typing import List

logger = logging.getLogger("ObraTrack.Clients")

def create_client(db: Session, data: dict) -> Client:
    name = (data.get("name") or "").strip()
    if not name:
        raise ValidationError("Client name is required.")
    client = Client(name=name, email=data.get("email"), phone=data.get("phone"))
    db.add(client)
    try:
        db.commit()
        db.refresh(client)
        logger.info(f"Created client '{client.name}' (ID: {client.id})")
        return client
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Failed to create client: {e}")
        raise ValidationError("Database error while creating client.")

def get_client(db: Session, client_id: int) -> Client:
    client = db.get(Client, client_id)
    if not client:
        raise ClientNotFound(f"Client with id={client_id} not found.")
    return client

def get_all_clients(db: Session) -> List[Client]:
    return db.query(Client).order_by(Client.name).all()

def update_client(db: Session, client_id: int, data: dict) -> Client:
    client = get_client(db, client_id)
    if "name" in data and not (data["name"] or "").strip():
        raise ValidationError("Client name cannot be empty.")
    for field in ["name", "email", "phone"]:
        if field in data:
            setattr(client, field, data[field])
    try:
        db.commit()
        db.refresh(client)
        logger.info(f"Updated client {client.id}")
        return client
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Failed to update client {client_id}: {e}")
        raise ValidationError("Database error while updating client.")

def delete_client(db: Session, client_id: int) -> None:
    """
    Удалить заказчика; его проекты остаются без заказчика.
    """
    client = get_client(db, client_id)
    db.query(Project).filter(Project.client_id == client_id).update(
        {Project.client_id: None}, synchronize_session=False
    )
    db.delete(client)
    try:
        db.commit()
        logger.info(f"Deleted client {client_id}")
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Failed to delete client {client_id}: {e}")
        raise ValidationError("Database error while deleting client.")
