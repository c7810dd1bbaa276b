"""LLM provider interface and prompt templates."""

from llm.base import BaseLLMProvider
from llm.prompt_manager import PromptManager, get_prompt_manager

__all__ = ["BaseLLMProvider", "PromptManager", "get_prompt_manager"]
