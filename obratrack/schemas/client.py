#obratrack/schemas/client.py
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional
from datetime import datetime

class ClientBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=128, examples=["Constructora Andes"], description="Имя заказчика")
    email: Optional[str] = Field(None, max_length=255, description="Email (без валидации формата)")
    phone: Optional[str] = Field(None, max_length=32, description="Телефон")

class ClientCreate(ClientBase):
    model_config = ConfigDict(extra="forbid")

class ClientUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = Field(None, min_length=1, max_length=128)
    email: Optional[str] = Field(None, max_length=255)
    phone: Optional[str] = Field(None, max_length=32)

class ClientRead(ClientBase):
    model_config = ConfigDict(from_attributes=True)

    id: int
    created_at: datetime
