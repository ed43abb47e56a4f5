"""
LLM Factory for Multi-Provider Support

Builds the LangChain chat model behind the plan generator from a model
identifier. The provider is picked from the identifier prefix:

- OpenAI: "gpt-4o-mini", "gpt-3.5-turbo" (no prefix)
- Azure OpenAI: "azure/<deployment>"
- Anthropic: "claude-..."
- Google Gemini: "gemini/<model>"
- Ollama: "ollama/<model>" (local, no API key)

Provider packages are imported lazily so only the selected provider
needs to be installed.
"""

import logging
import os
from typing import Any, Optional

from langchain_core.language_models import BaseChatModel

from plan_relay.config import RelaySettings

logger = logging.getLogger(__name__)

INSTALL_HINTS = (
    "Installation instructions:\n"
    "  - For OpenAI / Azure OpenAI: pip install langchain-openai\n"
    "  - For Anthropic: pip install langchain-anthropic\n"
    "  - For Google Gemini: pip install langchain-google-genai\n"
    "  - For Ollama: pip install langchain-ollama"
)


def _require_env(name: str, provider: str) -> str:
    value = os.getenv(name)
    if not value:
        raise ValueError(f"{provider} requires {name} environment variable")
    return value


def create_llm(
    model: str = "gpt-4o-mini",
    temperature: float = 0.7,
    max_tokens: Optional[int] = None,
    timeout: Optional[float] = 30.0,
    max_retries: int = 2,
    **kwargs: Any,
) -> BaseChatModel:
    """
    Create a chat model instance based on the model identifier.

    Environment variables required:
    - OpenAI: OPENAI_API_KEY
    - Azure OpenAI: AZURE_OPENAI_API_KEY, AZURE_OPENAI_ENDPOINT, AZURE_OPENAI_API_VERSION (optional)
    - Anthropic: ANTHROPIC_API_KEY
    - Google Gemini: GOOGLE_API_KEY

    Args:
        model: Model identifier string
        temperature: Sampling temperature (0.0 to 2.0)
        max_tokens: Maximum tokens to generate (None for model default)
        timeout: Request timeout in seconds
        max_retries: Maximum number of retries on API errors
        **kwargs: Additional provider-specific parameters

    Returns:
        Chat model instance (ChatOpenAI, AzureChatOpenAI, ChatAnthropic, ...)

    Raises:
        ImportError: If the provider package is not installed
        ValueError: If a required credential is missing
    """
    try:
        if model.startswith("azure/"):
            from langchain_openai import AzureChatOpenAI

            deployment = model.removeprefix("azure/")
            api_key = _require_env("AZURE_OPENAI_API_KEY", "Azure OpenAI")
            endpoint = _require_env("AZURE_OPENAI_ENDPOINT", "Azure OpenAI")

            logger.info(f"Creating Azure OpenAI LLM: deployment={deployment}, endpoint={endpoint}")
            return AzureChatOpenAI(
                azure_deployment=deployment,
                azure_endpoint=endpoint,
                api_key=api_key,
                api_version=os.getenv("AZURE_OPENAI_API_VERSION", "2024-02-15-preview"),
                temperature=temperature,
                max_tokens=max_tokens,
                timeout=timeout,
                max_retries=max_retries,
                **kwargs,
            )

        if model.startswith("ollama/"):
            from langchain_ollama import ChatOllama

            model_name = model.removeprefix("ollama/")
            logger.info(f"Creating Ollama LLM: model={model_name}")
            return ChatOllama(
                model=model_name,
                temperature=temperature,
                num_predict=max_tokens,
                **kwargs,
            )

        if model.startswith("gemini/"):
            from langchain_google_genai import ChatGoogleGenerativeAI

            model_name = model.removeprefix("gemini/")
            api_key = _require_env("GOOGLE_API_KEY", "Google Gemini")

            logger.info(f"Creating Google Gemini LLM: model={model_name}")
            return ChatGoogleGenerativeAI(
                model=model_name,
                temperature=temperature,
                max_tokens=max_tokens,
                timeout=timeout,
                max_retries=max_retries,
                google_api_key=api_key,
                **kwargs,
            )

        if model.startswith("claude"):
            from langchain_anthropic import ChatAnthropic

            api_key = _require_env("ANTHROPIC_API_KEY", "Anthropic")

            logger.info(f"Creating Anthropic LLM: model={model}")
            return ChatAnthropic(
                model=model,
                temperature=temperature,
                max_tokens=max_tokens or 1024,
                timeout=timeout,
                max_retries=max_retries,
                anthropic_api_key=api_key,
                **kwargs,
            )

        from langchain_openai import ChatOpenAI

        api_key = _require_env("OPENAI_API_KEY", "OpenAI")

        logger.info(f"Creating OpenAI LLM: model={model}")
        return ChatOpenAI(
            model=model,
            temperature=temperature,
            max_tokens=max_tokens,
            timeout=timeout,
            max_retries=max_retries,
            api_key=api_key,
            **kwargs,
        )

    except ImportError as e:
        error_msg = f"Failed to import required LangChain package: {e}\n\n{INSTALL_HINTS}"
        logger.error(error_msg)
        raise ImportError(error_msg) from e


def create_llm_from_settings(settings: RelaySettings) -> BaseChatModel:
    """Create the chat model described by the relay settings."""
    logger.info(
        f"Creating LLM from settings: model={settings.llm_model}, "
        f"temperature={settings.llm_temperature}"
    )
    return create_llm(
        model=settings.llm_model,
        temperature=settings.llm_temperature,
        max_tokens=settings.llm_max_tokens,
        timeout=settings.llm_timeout,
        max_retries=settings.llm_max_retries,
    )
