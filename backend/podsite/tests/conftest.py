import io
import math
import struct
import wave
from pathlib import Path
from typing import Dict, List, Optional

import pytest
from botocore.exceptions import ClientError
from fastapi.testclient import TestClient
from sqlmodel import Session

from infrastructure.storage import StorageClient
from podsite.core.config import Settings, get_settings
from podsite.core.database import build_engine, create_db_and_tables
from podsite.core.deps import get_storage, get_transcriber
from podsite.main import create_app
from podsite.services.transcription import SegmentData

ADMIN_PASSWORD = "correct-horse"
PUBLIC_BASE = "https://cdn.test/episodes"


def make_wav(seconds: float = 1.0, rate: int = 8000, freq: float = 220.0, amplitude: float = 0.5, channels: int = 1) -> bytes:
    """16-bit PCM sine tone; pydub reads WAV without ffmpeg."""
    frames = int(seconds * rate)
    buf = io.BytesIO()
    with wave.open(buf, "wb") as wav:
        wav.setnchannels(channels)
        wav.setsampwidth(2)
        wav.setframerate(rate)
        data = bytearray()
        for i in range(frames):
            value = int(amplitude * 32767 * math.sin(2 * math.pi * freq * i / rate))
            data += struct.pack("<h", value) * channels
        wav.writeframes(bytes(data))
    return buf.getvalue()


class InMemoryS3:
    """The slice of the boto3 S3 client StorageClient talks to."""

    def __init__(self) -> None:
        self.objects: Dict[str, bytes] = {}
        self.content_types: Dict[str, str] = {}

    def put_object(self, Bucket: str, Key: str, Body: bytes, ContentType: str = "") -> dict:
        self.objects[Key] = bytes(Body)
        self.content_types[Key] = ContentType
        return {}

    def get_object(self, Bucket: str, Key: str) -> dict:
        if Key not in self.objects:
            raise ClientError({"Error": {"Code": "NoSuchKey", "Message": "missing"}}, "GetObject")
        return {"Body": io.BytesIO(self.objects[Key])}

    def delete_object(self, Bucket: str, Key: str) -> dict:
        self.objects.pop(Key, None)
        return {}


class FakeTranscriber:
    def __init__(self, segments: Optional[List[SegmentData]] = None) -> None:
        self.segments = segments or []
        self.calls: List[tuple] = []

    def transcribe(self, audio: bytes, filename: str = "audio.mp3") -> List[SegmentData]:
        self.calls.append((len(audio), filename))
        return list(self.segments)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        APP_ENV="test",
        DATABASE_URL="sqlite://",
        ADMIN_PASSWORD=ADMIN_PASSWORD,
        OPENAI_API_KEY="sk-test-key",
        STORAGE_PUBLIC_BASE_URL=PUBLIC_BASE,
        PEAKS_TARGET_COUNT=100,
    )


@pytest.fixture
def db_engine(tmp_path: Path):
    """Fresh file-backed SQLite database per test."""
    engine = build_engine(f"sqlite:///{(tmp_path / 'test.db').as_posix()}")
    create_db_and_tables(engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def db(db_engine):
    with Session(db_engine, expire_on_commit=False) as session:
        yield session


@pytest.fixture
def s3() -> InMemoryS3:
    return InMemoryS3()


@pytest.fixture
def storage(s3: InMemoryS3) -> StorageClient:
    return StorageClient("episodes", public_base_url=PUBLIC_BASE, client=s3)


@pytest.fixture
def transcriber() -> FakeTranscriber:
    return FakeTranscriber()


@pytest.fixture
def app(settings, db_engine, storage, transcriber):
    application = create_app(settings, engine=db_engine)
    application.dependency_overrides[get_settings] = lambda: settings
    application.dependency_overrides[get_storage] = lambda: storage
    application.dependency_overrides[get_transcriber] = lambda: transcriber
    return application


@pytest.fixture
def client(app) -> TestClient:
    return TestClient(app)


@pytest.fixture
def admin_client(client: TestClient) -> TestClient:
    r = client.post("/api/admin/login", json={"password": ADMIN_PASSWORD})
    assert r.status_code == 200, r.text
    return client


@pytest.fixture
def wav_bytes():
    """Factory for small PCM WAV payloads."""
    return make_wav
