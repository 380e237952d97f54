import pytest

from settlescout.config.settings import Settings


@pytest.fixture
def settings() -> Settings:
    return Settings()
