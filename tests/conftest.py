import pytest

from app import create_app
from services import register_user
from store import LocalDataStore


@pytest.fixture
def store(tmp_path):
    return LocalDataStore(tmp_path / "data")


@pytest.fixture
def app(tmp_path):
    app = create_app({
        'TESTING': True,
        'SECRET_KEY': 'test-secret',
        'STORE_BACKEND': 'local',
        'DATA_DIR': str(tmp_path / "data"),
        'UPLOAD_FOLDER': str(tmp_path / "uploads"),
        'SCHEDULER_ENABLED': False,
    })
    return app


@pytest.fixture
def client(app):
    return app.test_client()


def make_user(store, username="alice", name="앨리스", role="user"):
    user = register_user(store, username, "password123", name,
                         security_question="첫 반려동물 이름은?", security_answer="Happy Dog")
    if role != "user":
        user = store.users.update(user['id'], {'role': role})
    return user
