"""
Pytest Configuration and Fixtures

Shared fixtures for all tests.
"""

import json
import pytest
import tempfile
import shutil
from pathlib import Path
from typing import Dict, Any
from unittest.mock import AsyncMock, MagicMock

from scriptloom.llm.providers import BaseLLMProvider
from scriptloom.models.proposal import WorldSnapshot


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    temp_path = tempfile.mkdtemp()
    yield Path(temp_path)
    shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def sample_config() -> Dict[str, Any]:
    """Sample project configuration (camelCase keys, as exported by editors)."""
    return {
        "knownEntityNames": ["Captain Reyes"],
        "canonLocks": ["The Architect"],
        "customPatterns": [
            {"pattern": r"Project\s+(\w+)", "entityType": "concept", "label": "project codename"}
        ],
        "pipeline": {
            "enable_llm": True,
            "merge_policy": "model_primary"
        },
        "llm": {
            "provider": "anthropic"
        }
    }


@pytest.fixture
def sample_snapshot() -> WorldSnapshot:
    """Known world state: one character, two locations, one item."""
    return WorldSnapshot.from_dict({
        "characters": [
            {"id": "char-1", "name": "Maya", "currentLocationId": "loc-1"}
        ],
        "locations": [
            {"id": "loc-1", "name": "Harbor Office", "description": "Cramped office over the docks"},
            {"id": "loc-2", "name": "Lighthouse", "description": ""}
        ],
        "items": [
            {"id": "item-1", "name": "Brass Compass"}
        ]
    })


@pytest.fixture
def sample_script_text() -> str:
    """Screenplay-formatted script exercising every line rule."""
    return "\n".join([
        "INT. APARTMENT - NIGHT",
        "",
        "ELI",
        "  I've been searching for years.",
        "",
        "EXT. LIGHTHOUSE - DAWN",
        "",
        "MAYA: We leave tonight.",
        "",
        "CAPTION: March 2031 - The flood season",
        "Setting: October 2025",
        "Eli picks up the rusted key from the sand.",
        "The ORACLE NETWORK hums somewhere below.",
    ])


@pytest.fixture
def normalized_script_data() -> Dict[str, Any]:
    """A two-page normalized comic script."""
    return {
        "source_hash": "sha256:" + "0" * 64,
        "warnings": [],
        "pages": [
            {
                "page_number": 1,
                "panels": [
                    {
                        "panel_number": 1,
                        "blocks": [
                            {"type": "ART_NOTE", "text": "Wide shot of the harbor at dawn. MAYA stands on the pier holding a brass COMPASS."},
                            {"type": "CAPTION", "text": "Port Verity, 6:00 AM."},
                            {"type": "NARRATOR", "text": "The city was quiet before the storm."}
                        ]
                    },
                    {
                        "panel_number": 2,
                        "blocks": [
                            {"type": "DIALOGUE", "speaker": "MAYA", "text": "We leave tonight."},
                            {"type": "SFX", "text": "KRAAAK"}
                        ]
                    }
                ]
            },
            {
                "page_number": 2,
                "panels": [
                    {
                        "panel_number": 1,
                        "blocks": [
                            {"type": "DIALOGUE", "speaker": "ELI", "text": "I've been searching for years."},
                            {"type": "DIALOGUE", "speaker": "MAYA", "text": "Then stop searching."},
                            {"type": "ART_NOTE", "text": "WELCOME TO HARBOR TOWN sign hangs crooked. THE WARDENS patrol."}
                        ]
                    }
                ]
            }
        ]
    }


@pytest.fixture
def storyboard_response_data() -> Dict[str, Any]:
    """A grounded storyboard batch covering every panel of normalized_script_data."""
    return {
        "manifest": [
            {"page": 1, "panel": 1},
            {"page": 1, "panel": 2},
            {"page": 2, "panel": 1}
        ],
        "pages": [
            {
                "page_number": 1,
                "panels": [
                    {
                        "panel_number": 1,
                        "beat": "Maya waits on the pier at dawn.",
                        "tone": "quiet",
                        "characters": ["MAYA"],
                        "evidence": [{"block_id": "p1-pa1-b0", "snippet": "MAYA stands on the pier"}]
                    },
                    {
                        "panel_number": 2,
                        "beat": "Maya announces the departure.",
                        "tone": "resolute",
                        "characters": ["MAYA"],
                        "evidence": [{"block_id": "p1-pa2-b0", "block_type": "DIALOGUE", "snippet": "We leave tonight."}]
                    }
                ]
            },
            {
                "page_number": 2,
                "panels": [
                    {
                        "panel_number": 1,
                        "beat": "Eli admits the search has been long.",
                        "tone": "weary",
                        "characters": ["ELI", "MAYA"],
                        "evidence": [{"block_id": "p2-pa1-b0", "snippet": "I've been searching for years."}]
                    }
                ]
            }
        ],
        "coverage": [
            {"page": 1, "panel": 1, "status": "ok"},
            {"page": 1, "panel": 2, "status": "ok"},
            {"page": 2, "panel": 1, "status": "ok"}
        ]
    }


@pytest.fixture
def make_provider():
    """Factory for a fake provider whose generate() returns the given text (or raises)."""
    def _make(response=None, side_effect=None):
        provider = MagicMock(spec=BaseLLMProvider)
        provider.name = "fake"
        if isinstance(response, (dict, list)):
            response = json.dumps(response)
        provider.generate = AsyncMock(return_value=response, side_effect=side_effect)
        return provider
    return _make
