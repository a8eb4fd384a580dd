"""
Pytest fixtures and configuration for the test suite.

Every fixture is rooted at tmp_path and driven by a frozen clock so
timestamps and image file names are deterministic.
"""

import sys
from pathlib import Path

import pytest

# Add src to path so tests can import the api, models and utils packages
src_path = Path(__file__).parent.parent / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

from models.document_store import DocumentStore  # noqa: E402
from models.group_service import GroupService  # noqa: E402
from utils.config_loader import Settings  # noqa: E402
from utils.image_vault import ImageVault  # noqa: E402

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"
PNG_DATA_URI = "data:image/png;base64,iVBORw0KGgo="
JPEG_DATA_URI = "data:image/jpeg;base64,/9j/2wBDAA=="
JPEG_BYTES = b"\xff\xd8\xff\xdb\x00\x43\x00"

START_MS = 1_700_000_000_000


class FrozenClock:
    """Millisecond clock that only moves when told to"""

    def __init__(self, start: int = START_MS):
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int = 1) -> int:
        self.now += ms
        return self.now


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(data_root=tmp_path / "server_data", log_level="WARNING")


@pytest.fixture
def store(settings) -> DocumentStore:
    store = DocumentStore(settings.data_path)
    store.write_all([])
    return store


@pytest.fixture
def vault(settings, clock) -> ImageVault:
    vault = ImageVault(settings.images_path, url_prefix=settings.image_prefix, clock=clock)
    vault.ensure_dir()
    return vault


@pytest.fixture
def service(store, vault, clock) -> GroupService:
    return GroupService(store, vault, clock=clock)


@pytest.fixture
def client(settings, clock):
    """TestClient over a fresh app; used as a context manager so startup seeding runs"""
    from fastapi.testclient import TestClient

    from api.main import create_app

    app = create_app(settings, clock=clock)
    with TestClient(app) as test_client:
        yield test_client


def vault_file(settings: Settings, url: str) -> Path:
    """Path on disk behind a /images/<name> URL"""
    return settings.images_path / url.rsplit("/", 1)[-1]
