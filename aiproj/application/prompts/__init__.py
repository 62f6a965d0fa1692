"""Prompt building for project generation."""

from .prompt_service import InjectedPrompt, PromptService
from .system_prompts import DEFAULT_SEPARATOR, SYSTEM_PROMPT

__all__ = ["InjectedPrompt", "PromptService", "DEFAULT_SEPARATOR", "SYSTEM_PROMPT"]
