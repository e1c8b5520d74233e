import pytest


@pytest.fixture(autouse=True)
def disable_ratelimit(settings):
    settings.RATELIMIT_ENABLE = False


@pytest.fixture(autouse=True)
def temp_media_root(settings, tmp_path):
    settings.MEDIA_ROOT = str(tmp_path / 'media')
