"""PromptService - builds the prompt sent to the provider for a request."""

import logging
from dataclasses import dataclass

from aiproj.application.prompts.system_prompts import (
    DEFAULT_SEPARATOR,
    INJECTION_MARKERS,
    SYSTEM_PROMPT,
)
from aiproj.domain.models.generation import GenerationRequest

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class InjectedPrompt:
    """Outcome of system prompt injection."""

    system_prompt: str  # Empty when nothing was injected
    user_query: str
    combined_prompt: str
    was_injected: bool


class PromptService:
    """Service for building provider prompts.

    Centralizes:
    - Project prompt text built from a GenerationRequest
    - Injection of the output-format system prompt ahead of the user query
    """

    def __init__(
        self,
        *,
        inject_system_prompt: bool = True,
        custom_system_prompt: str | None = None,
        separator: str = DEFAULT_SEPARATOR,
    ) -> None:
        self.inject_system_prompt = inject_system_prompt
        self.system_prompt = custom_system_prompt or SYSTEM_PROMPT
        self.separator = separator

    def build_project_prompt(self, request: GenerationRequest) -> str:
        lines = [
            f"Generate a complete, production-ready {request.project_name} project.",
            "",
            "PROJECT REQUIREMENTS:",
            request.prompt,
        ]

        if request.additional_context and request.additional_context.strip():
            lines += ["", "ADDITIONAL CONTEXT:", request.additional_context]

        lines += [
            "",
            "IMPORTANT: Generate the COMPLETE project with ALL necessary files.",
            "Include proper folder structure, configuration files, and working source code.",
            "Make sure the project can run immediately after extraction.",
        ]
        return "\n".join(lines) + "\n"

    def inject(self, user_query: str) -> InjectedPrompt:
        """Prefix ``user_query`` with the system prompt unless it already has one."""
        if all(marker in user_query for marker in INJECTION_MARKERS):
            logger.debug("Query already carries output format instructions; not injecting")
            return InjectedPrompt(
                system_prompt="",
                user_query=user_query,
                combined_prompt=user_query,
                was_injected=False,
            )

        return InjectedPrompt(
            system_prompt=self.system_prompt,
            user_query=user_query,
            combined_prompt=f"{self.system_prompt}{self.separator}{user_query}",
            was_injected=True,
        )

    def prepare(self, request: GenerationRequest) -> str:
        """Full prompt for ``request``, with injection when enabled."""
        project_prompt = self.build_project_prompt(request)
        if not self.inject_system_prompt:
            return project_prompt
        return self.inject(project_prompt).combined_prompt
