import os
import sys

import pytest

ROOT_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT_DIR not in sys.path:
    sys.path.insert(0, ROOT_DIR)

os.environ.setdefault("GEMINI_API_KEY", "test-key")

from letter_agents.services.letter_orchestrator import LetterOrchestrator
from letter_agents.services.refinement_session import RefinementSessionManager
from letter_agents.services.structured_generator import StructuredGenerator
from tests.fakes import FakeChannelFactory, FakeCompletionProvider


@pytest.fixture
def provider() -> FakeCompletionProvider:
    return FakeCompletionProvider()


@pytest.fixture
def channels() -> FakeChannelFactory:
    return FakeChannelFactory()


@pytest.fixture
def orchestrator(provider, channels) -> LetterOrchestrator:
    return LetterOrchestrator(
        generator=StructuredGenerator(provider),
        sessions=RefinementSessionManager(channels),
    )
