#obratrack/schemas/response.py
from pydantic import BaseModel, Field
from typing import Any, Optional

class ErrorResponse(BaseModel):
    """
    ErrorResponse — стандартная структура ошибки (как её отдают exception handlers).
    """
    detail: str = Field(..., examples=["Stage not found"], description="Сообщение об ошибке")

class SuccessResponse(BaseModel):
    """
    SuccessResponse — универсальный ответ с результатом выполнения операции.
    """
    result: Any = Field(..., description="Результат запроса (id, список id и т.п.)")
    detail: Optional[str] = Field(None, examples=["Operation successful"], description="Дополнительная информация")
