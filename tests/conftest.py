import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from models.database import Base, get_db
from services.rack_service import RackService
from services.room_service import RoomService
from services.placement_service import PlacementCoordinator


@pytest.fixture
def engine(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'storage.db'}",
        echo=False,
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(session_factory):
    import main

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    main.app.dependency_overrides[get_db] = override_get_db
    yield TestClient(main.app)
    main.app.dependency_overrides.clear()


@pytest.fixture
def room(db):
    return RoomService.create_room(db, "Garagem")


@pytest.fixture
def rack(db, room):
    return RackService.create_rack(db, room.id, "Estante de metal", max_shelves=5, positions_per_shelf=6)


@pytest.fixture
def make_boxes(db):
    def factory(room_id, count):
        return [PlacementCoordinator.create_box(db, room_id, name=f"Caixa {i}") for i in range(1, count + 1)]
    return factory
