"""
LLM Factory for Plan Relay

Provides a centralized way to instantiate the chat model used for plan generation.
"""

from .factory import create_llm, create_llm_from_settings

__all__ = ["create_llm", "create_llm_from_settings"]
