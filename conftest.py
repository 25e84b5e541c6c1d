import pytest

from mock_interview.config import settings


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    """Point every file-touching setting at a temp dir and disable auth."""
    monkeypatch.setattr(settings, "upload_dir", str(tmp_path / "uploads"))
    monkeypatch.setattr(settings, "store_path", str(tmp_path / "data" / "candidates.json"))
    monkeypatch.setattr(settings, "api_key", None)
    monkeypatch.setattr(settings, "analytics_path", None)
    return settings
