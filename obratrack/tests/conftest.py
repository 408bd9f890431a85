import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool
import os
from typing import Generator, Any

# Переменные окружения выставляются ДО импорта settings и приложения
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["AUTO_CREATE_TABLES"] = "false"
os.environ["NEEDS_DATA_REQUIRE_STARTED"] = "true"

# obratrack.models регистрирует все модели в Base.metadata
import obratrack.models
from obratrack.models.base import Base

from obratrack.core.settings import settings as app_settings
from obratrack.database import configure_sqlite
from obratrack.main import app

engine = create_engine(
    app_settings.DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
configure_sqlite(engine)

# commit в CRUD освобождает SAVEPOINT, внешняя транзакция теста откатывается
TestingSessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    join_transaction_mode="create_savepoint",
)

from obratrack.dependencies import get_db
from obratrack.crud.user import create_user
from obratrack.crud.client import create_client
from obratrack.crud.stage_template import create_stage_template


@pytest.fixture(scope="session", autouse=True)
def create_test_tables_session_scope():
    """
    Создаёт таблицы один раз на сессию тестов и удаляет их в конце.
    """
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def db() -> Generator[Session, None, None]:
    """
    Сессия на тест; все изменения откатываются после теста.
    """
    connection = engine.connect()
    transaction = connection.begin()
    session = TestingSessionLocal(bind=connection)

    yield session

    session.close()
    transaction.rollback()
    connection.close()


@pytest.fixture(scope="function")
def client(db: Session) -> Generator[TestClient, None, None]:
    """
    TestClient с подменённой зависимостью get_db.
    """
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    del app.dependency_overrides[get_db]


@pytest.fixture(scope="function")
def test_user(db: Session) -> Any:
    return create_user(db, {"name": "Juan Pérez", "email": "juan.perez@example.com", "role": "Ingeniero"})


@pytest.fixture(scope="function")
def other_user(db: Session) -> Any:
    return create_user(db, {"name": "Ana Soto", "email": "ana.soto@example.com", "role": "Arquitecta"})


@pytest.fixture(scope="function")
def test_client_entity(db: Session) -> Any:
    return create_client(db, {"name": "Constructora Andes", "email": "contacto@andes.cl", "phone": "+56 9 1234 5678"})


@pytest.fixture(scope="function")
def two_templates(db: Session, test_user: Any) -> list:
    """
    Два шаблона длительностью 3 и 5 дней.
    """
    return [
        create_stage_template(db, {"name": "Permisos", "order_number": 1, "default_responsible_id": test_user.id, "estimated_duration_days": 3}),
        create_stage_template(db, {"name": "Obra gruesa", "order_number": 2, "estimated_duration_days": 5}),
    ]
