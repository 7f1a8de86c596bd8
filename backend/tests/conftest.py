import pytest
from fastapi.testclient import TestClient
from sqlmodel import select

from aprendia import models
from aprendia.config import Settings
from aprendia.database import Database
from aprendia.main import create_app


@pytest.fixture
def settings(monkeypatch):
    """Development settings with no real database configured."""
    monkeypatch.setenv("ENV", "development")
    monkeypatch.delenv("DATABASE_URL", raising=False)
    return Settings()


@pytest.fixture
def database():
    """A fresh in-memory SQLite store per test."""
    return Database("sqlite://")


@pytest.fixture
def client(settings, database):
    # entering the client runs the lifespan, which connects the database
    with TestClient(create_app(settings, database)) as c:
        yield c


@pytest.fixture
def payload():
    """Build a valid registration body, overriding selected fields."""
    def _make(**overrides):
        data = {
            "name": "Ana Ruiz",
            "email": "ana@test.com",
            "municipality": "comitan",
            "education": "posgrado",
        }
        data.update(overrides)
        return data
    return _make


@pytest.fixture
def add_registrant(database):
    """Insert a row directly, bypassing the API (e.g. inactive registrants)."""
    def _add(email, municipality=models.Municipality.TUXTLA, education=models.Education.UNIVERSIDAD,
             status=models.Status.ACTIVE, name="Persona"):
        with database.session() as session:
            session.add(models.Registrant(name=name, email=email, municipality=municipality,
                                          education=education, status=status))
            session.commit()
    return _add


@pytest.fixture
def count_rows(database):
    def _count():
        with database.session() as session:
            return len(session.exec(select(models.Registrant)).all())
    return _count
