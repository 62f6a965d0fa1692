"""Live provider smoke tests.

Skipped unless the provider's CLI is installed; run with ``-m integration``.
They cost real tokens.
"""

import os
import shutil

import pytest

from aiproj.domain.models.generation import Completed, GenerationRequest, ProviderIdentifier, ProviderOption
from aiproj.application.generation_orchestrator import GenerationOrchestrator
from aiproj.application.providers import ProviderExecutionService

pytestmark = pytest.mark.integration

RUN_LIVE = os.environ.get("AIPROJ_LIVE_TESTS") == "1"


def _generate(tmp_path, provider: str, option: str):
    orchestrator = GenerationOrchestrator(
        output_dir=tmp_path / "projects",
        archive_dir=tmp_path / "archives",
        provider_service=ProviderExecutionService(response_timeout=300),
    )
    return orchestrator.generate(
        GenerationRequest(
            prompt="A Python script that prints the current date. One file only.",
            provider=ProviderIdentifier(provider),
            option=ProviderOption(id=option),
            project_name="DatePrinter",
        )
    )


@pytest.mark.claude_code
@pytest.mark.skipif(
    not RUN_LIVE or shutil.which("claude") is None,
    reason="Claude Code CLI not installed or AIPROJ_LIVE_TESTS not set",
)
def test_claude_code_generates_project(tmp_path):
    state = _generate(tmp_path, "claude-code", "haiku")

    assert isinstance(state, Completed), state
    assert state.result.files_archived >= 1


@pytest.mark.gemini_cli
@pytest.mark.skipif(
    not RUN_LIVE or shutil.which("gemini") is None,
    reason="Gemini CLI not installed or AIPROJ_LIVE_TESTS not set",
)
def test_gemini_cli_generates_project(tmp_path):
    state = _generate(tmp_path, "gemini-cli", "gemini-2.5-flash")

    assert isinstance(state, Completed), state
    assert state.result.files_archived >= 1
