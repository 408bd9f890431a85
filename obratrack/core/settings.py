# obratrack/core/settings.py
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict
from typing import Annotated, List
from pydantic import field_validator

class Settings(BaseSettings):
    """
    Основные переменные окружения и настройки приложения.
    Значения берутся из окружения или из .env.
    """
    # Database
    DATABASE_URL: str = "sqlite:///./obratrack.db"
    AUTO_CREATE_TABLES: bool = True

    # App meta
    ENV: str = "development"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"
    ALLOWED_ORIGINS: Annotated[List[str], NoDecode] = ["http://localhost:3000", "http://localhost:5173"]

    # Правила производных полей
    NEEDS_DATA_REQUIRE_STARTED: bool = True

    # Шаблоны этапов по умолчанию для initial_data (через запятую в .env)
    DEFAULT_STAGE_TEMPLATES: Annotated[List[str], NoDecode] = [
        "Proyecto",
        "Permisos",
        "Obra gruesa",
        "Terminaciones",
        "Entrega",
    ]

    # Авто-сплит строковых списков из .env
    @field_validator("ALLOWED_ORIGINS", "DEFAULT_STAGE_TEMPLATES", mode="before")
    @classmethod
    def split_csv(cls, v):
        if isinstance(v, str):
            return [i.strip() for i in v.split(",") if i.strip()]
        return v

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

settings = Settings()
