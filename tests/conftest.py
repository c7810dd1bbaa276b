"""Pytest configuration and fixtures."""

import pytest
from fastapi.testclient import TestClient

from api.config import Settings, get_settings
from api.main import app
from core.models import CharacterProfile, CharacterType, GeneratedScene, SceneRequest
from llm.prompt_manager import PromptManager

SCREENPLAY = (
    "FADE IN:\n"
    "\n"
    "INT. CABIN - NIGHT\n"
    "\n"
    "Rain hammers the roof.\n"
    "\n"
    "JANE\n"
    "Is anyone out there?\n"
    "\n"
    "TOM\n"
    "(whispering)\n"
    "Just the wind.\n"
    "\n"
    "EXT. FOREST - DAY\n"
    "\n"
    "Jane runs between the trees.\n"
    "\n"
    "JANE\n"
    "Tom!"
)


@pytest.fixture
def screenplay() -> str:
    """Two-scene screenplay with a FADE IN before the first heading."""
    return SCREENPLAY


@pytest.fixture
def settings() -> Settings:
    return Settings()


@pytest.fixture
def prompt_manager() -> PromptManager:
    return PromptManager()


@pytest.fixture
def scene_requests() -> list[SceneRequest]:
    return [
        SceneRequest(location="Ranger station", scenario="Jane radios for help"),
        SceneRequest(
            location="Forest clearing",
            scenario="Tom finds the missing hiker",
            direction="Tense, quiet",
        ),
    ]


@pytest.fixture
def registry() -> list[CharacterProfile]:
    return [
        CharacterProfile(
            name="Jane",
            type=CharacterType.LEAD,
            age="30s",
            description="A stubborn park ranger.",
            arc_notes="Learns to ask for help.",
        ),
        CharacterProfile(name="Tom", description="Her nervous brother."),
        CharacterProfile(name="Ghost", type=CharacterType.MINOR),
    ]


@pytest.fixture
def generated_scene() -> GeneratedScene:
    return GeneratedScene(
        heading="INT. CABIN - NIGHT",
        content=["She enters.", "JANE", "Hello?"],
    )


@pytest.fixture
def client() -> TestClient:
    """Create test client."""
    get_settings.cache_clear()
    yield TestClient(app)
    app.dependency_overrides.clear()
