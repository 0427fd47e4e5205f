"""Shared pytest fixtures: a throwaway SQLite database seeded with schools."""
import os

os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from supervision_geofence.auth import Actor, create_access_token
from supervision_geofence.db import get_db, init_db, make_engine
from supervision_geofence.schools.models import School

GARKI = {"id": 1, "name": "GSS Garki", "latitude": 9.0765, "longitude": 7.3986, "radius": 150.0}


@pytest.fixture
def engine(tmp_path):
    eng = make_engine(f"sqlite:///{tmp_path / 'geofence.db'}")
    init_db(bind=eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    factory = sessionmaker(bind=engine, autoflush=False, autocommit=False)
    db = factory()
    db.add_all(
        [
            School(
                id=GARKI["id"],
                name=GARKI["name"],
                latitude=GARKI["latitude"],
                longitude=GARKI["longitude"],
                geofence_radius_m=GARKI["radius"],
            ),
            School(id=2, name="LEA Primary Wuse", latitude=9.0579, longitude=7.4951,
                   geofence_radius_m=None),
            School(id=3, name="Model School Kubwa", latitude=None, longitude=None,
                   geofence_radius_m=100),
            School(id=4, name="Community School Jabi", latitude=9.0700, longitude=7.4200,
                   geofence_radius_m=0),
            School(id=5, name="Small Annex Maitama", latitude=9.0820, longitude=7.4950,
                   geofence_radius_m=40),
        ]
    )
    db.commit()
    db.close()
    return factory


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def head_of_tp():
    return Actor(id=7, username="hotp", roles=frozenset({"head_of_teaching_practice"}))


@pytest.fixture
def supervisor_actor():
    return Actor(id=42, username="supervisor", roles=frozenset({"supervisor"}))


@pytest.fixture
def client(session_factory):
    from supervision_geofence.main import app

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    """Build an Authorization header for a user id and role list."""

    def _headers(uid: int, roles) -> dict:
        token = create_access_token({"sub": f"user{uid}", "uid": uid, "roles": list(roles)})
        return {"Authorization": f"Bearer {token}"}

    return _headers
