import pytest

from liminal_transit.catalog import list_choices
from liminal_transit.engine import NarrativeEngine, create_session
from liminal_transit.models import NarrativeSession
from liminal_transit.resolver import apply_choice

TEST_SEED = "test-seed"

ENV_VARS = [
    "LIMINAL_ENHANCER_URL",
    "LIMINAL_ENHANCER_FORMAT",
    "LIMINAL_ENHANCER_MODEL",
    "LIMINAL_ENHANCER_API_KEY",
    "LIMINAL_ENHANCER_TIMEOUT",
    "LIMINAL_LOG_LEVEL",
    "HOST",
    "PORT",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    """Run every test without LIMINAL_* settings or a stray .env from the checkout."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    yield


@pytest.fixture
def session() -> NarrativeSession:
    return create_session(TEST_SEED)


@pytest.fixture
def engine() -> NarrativeEngine:
    return NarrativeEngine()


def _play_through(session: NarrativeSession, pick_index: int = 0, limit: int = 20) -> list[NarrativeSession]:
    """Resolve choices offline until the story ends. Returns every session value in order."""
    states = [session]
    for _ in range(limit):
        if session.ended:
            break
        choices = list_choices(session)
        choice = choices[min(pick_index, len(choices) - 1)]
        session = apply_choice(session, choice.id).session
        states.append(session)
    return states


@pytest.fixture
def play_through():
    return _play_through
