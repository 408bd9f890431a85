#obratrack/schemas/user.py
from pydantic import BaseModel, ConfigDict, EmailStr, Field
from typing import Optional
from datetime import datetime

class UserBase(BaseModel):
    """
    UserBase — базовая схема сотрудника.
    """
    name: str = Field(..., min_length=1, max_length=128, examples=["Juan Pérez"], description="Имя")
    email: EmailStr = Field(..., examples=["juan.perez@example.com"], description="Email (уникальный)")
    role: Optional[str] = Field(None, max_length=64, examples=["Ingeniero Civil"], description="Должность")

class UserCreate(UserBase):
    model_config = ConfigDict(extra="forbid")

class UserUpdate(BaseModel):
    """
    UserUpdate — обновление сотрудника (все поля опциональны).
    """
    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = Field(None, min_length=1, max_length=128)
    email: Optional[EmailStr] = None
    role: Optional[str] = Field(None, max_length=64)

class UserRead(UserBase):
    model_config = ConfigDict(from_attributes=True)

    id: int
    created_at: datetime
