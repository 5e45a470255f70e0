import asyncio
import io
import os
import tempfile

# Must be set before listingreel.config is imported.
_SHARED = tempfile.mkdtemp(prefix="listingreel-test-")
os.environ["SHARED_DATA_PATH"] = _SHARED
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["PUBLIC_BASE_URL"] = "http://testserver"

import pytest
from PIL import Image
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from listingreel import config
from listingreel.core.storage import ObjectStorage
from listingreel.db import get_db, init_db


class SleepRecorder:
    """Stands in for asyncio.sleep: records the delays and returns at once."""

    def __init__(self, on_sleep=None):
        self.delays = []
        self.on_sleep = on_sleep

    async def __call__(self, seconds):
        self.delays.append(seconds)
        if self.on_sleep:
            self.on_sleep()
        await asyncio.sleep(0)


def make_image(size=(64, 48), color=(200, 120, 40), fmt="JPEG") -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", size, color).save(buffer, format=fmt)
    return buffer.getvalue()


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


@pytest.fixture
def storage():
    return ObjectStorage(root=config.STORAGE_ROOT, public_base_url="http://testserver")


@pytest.fixture
def no_sleep():
    return SleepRecorder()


@pytest.fixture
def client(session_factory, storage):
    from fastapi.testclient import TestClient

    from listingreel.api.routes import get_storage
    from listingreel.main import app

    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_storage] = lambda: storage
    yield TestClient(app, raise_server_exceptions=False)
    app.dependency_overrides.clear()
