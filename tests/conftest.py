import pytest

from cadence.domain.constants import MS_PER_DAY, MS_PER_MINUTE
from cadence.domain.models import CardLifecycle, CardState
from cadence.domain.settings import DEFAULT_SETTINGS
from cadence.infrastructure.json_store import JsonCardRepository

# 2023-11-14T22:13:20Z
NOW = 1_700_000_000_000


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def settings():
    return DEFAULT_SETTINGS


@pytest.fixture
def review_card(now):
    """Mature review card: ease 2.5, interval 10d, two passes, due right now."""
    return CardState(
        id="r1",
        state=CardLifecycle.REVIEW,
        interval=10,
        ease=2.5,
        due=now,
        last_reviewed=now - 10 * MS_PER_DAY,
        repetitions=2,
    )


@pytest.fixture
def learning_card(now):
    return CardState(
        id="l1",
        state=CardLifecycle.LEARNING,
        interval=1,
        due=now - MS_PER_MINUTE,
        learning_step=0,
    )


@pytest.fixture
def store_path(tmp_path):
    return tmp_path / "deck.json"


@pytest.fixture
def repo(store_path):
    return JsonCardRepository(store_path)


@pytest.fixture
def mock_home(tmp_path, monkeypatch):
    """Mocks Path.home() to point to a temp dir."""
    home = tmp_path / "home"
    home.mkdir()

    # Mocking HOME to a temp directory to isolate config files
    monkeypatch.setenv("HOME", str(home))
    for var in ("CADENCE_STORE_PATH", "CADENCE_SETTINGS_FILE", "CADENCE_TIMEZONE", "CADENCE_SEED"):
        monkeypatch.delenv(var, raising=False)
    return home
