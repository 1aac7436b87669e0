import io
import os

os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from PIL import Image
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from plate_inventory.database import Base
from plate_inventory.exceptions import UploadFailure
from plate_inventory.recognizer import NotDetected
from plate_inventory.store import RecordStore


class FakeRecognizer:
    def __init__(self):
        self.result = NotDetected()
        self.calls = []

    def recognize(self, image_bytes, filename="car_plate.jpg"):
        self.calls.append((image_bytes, filename))
        return self.result


class FakeBlobStore:
    def __init__(self):
        self.fail = False
        self.uploads = []

    def upload_image(self, image_bytes, filename, content_type=None):
        if self.fail:
            raise UploadFailure("Failed to upload image to S3: AccessDenied")
        key = f"car_images/{len(self.uploads)}-{filename}"
        self.uploads.append((key, image_bytes, content_type))
        return key, f"https://blobs.example.com/{key}"


def _make_image(size=(1600, 900), fmt="JPEG", color=(180, 40, 40)):
    mode = "RGBA" if fmt == "PNG" else "RGB"
    fill = color + (255,) if mode == "RGBA" else color
    buffer = io.BytesIO()
    Image.new(mode, size, fill).save(buffer, format=fmt)
    return buffer.getvalue()


@pytest.fixture
def make_image():
    return _make_image


@pytest.fixture
def db():
    engine = create_engine(
        "sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool
    )
    Base.metadata.create_all(bind=engine)
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture
def store(db):
    return RecordStore(db, chunk_size=2)


@pytest.fixture
def recognizer():
    return FakeRecognizer()


@pytest.fixture
def blob_store():
    return FakeBlobStore()
