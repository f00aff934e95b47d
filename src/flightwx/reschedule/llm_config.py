"""Ranking model configuration: schema, named config files and model factory.

Configs live in ``configs/reschedule/<name>.json`` with their prompts under
the same directory. Only providers whose LangChain integration supports
structured output are accepted, since the ranker depends on it.
"""

from __future__ import annotations

import json
import os
from pathlib import Path

from langchain.chat_models import init_chat_model
from langchain_core.language_models import BaseChatModel
from pydantic import BaseModel, Field, PrivateAttr, field_validator

_CONFIGS_DIR = Path(__file__).resolve().parent.parent.parent.parent / "configs" / "reschedule"

STRUCTURED_OUTPUT_PROVIDERS = ("openai", "anthropic", "google_genai", "mistralai")


class LLMConfig(BaseModel):
    """Chat model used to rank alternative slots."""

    provider: str = "openai"
    model: str = "gpt-4o-mini"
    # Ranking should be repeatable for the same slots
    temperature: float = Field(default=0.3, ge=0.0, le=1.0)
    timeout_s: float = Field(default=30.0, gt=0)
    max_retries: int = Field(default=2, ge=0)

    @field_validator("provider")
    @classmethod
    def _structured_output_provider(cls, value: str) -> str:
        if value not in STRUCTURED_OUTPUT_PROVIDERS:
            raise ValueError(
                f"Provider '{value}' is not supported for ranking; "
                f"use one of {', '.join(STRUCTURED_OUTPUT_PROVIDERS)}"
            )
        return value

    @field_validator("model")
    @classmethod
    def _model_named(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Ranking model name must not be blank")
        return value.strip()


class PromptsConfig(BaseModel):
    """Prompt template paths, relative to the config's directory."""

    ranker: str = "prompts/ranker_v1.md"


class RankingConfig(BaseModel):
    """A named ranking setup: model plus prompts."""

    version: str = "1.0"
    name: str = "default"
    llm: LLMConfig = LLMConfig()
    prompts: PromptsConfig = PromptsConfig()

    _configs_dir: Path = PrivateAttr(default=_CONFIGS_DIR)

    def load_prompt(self, key: str) -> str:
        """Read a prompt template from the directory this config came from."""
        base = self._configs_dir.resolve()
        prompt_path = (base / getattr(self.prompts, key)).resolve()
        if base not in prompt_path.parents:
            raise ValueError(f"Prompt '{key}' points outside {base}")
        text = prompt_path.read_text()
        if not text.strip():
            raise ValueError(f"Prompt '{key}' is empty: {prompt_path}")
        return text


def load_ranking_config(name: str | None = None, configs_dir: Path | None = None) -> RankingConfig:
    """Load a ranking config by name.

    Resolution order:
    1. Explicit name parameter
    2. FLIGHTWX_RANKING_CONFIG environment variable
    3. "default"

    Raises:
        FileNotFoundError: No ``<name>.json`` in the configs directory.
        pydantic.ValidationError: Unsupported provider or bad settings.
    """
    config_name = name or os.environ.get("FLIGHTWX_RANKING_CONFIG", "default")
    configs_dir = configs_dir or _CONFIGS_DIR
    config_path = configs_dir / f"{config_name}.json"

    if not config_path.exists():
        raise FileNotFoundError(f"Ranking config not found: {config_path}")

    config = RankingConfig.model_validate(json.loads(config_path.read_text()))
    config._configs_dir = configs_dir
    return config


def create_llm(config: RankingConfig) -> BaseChatModel:
    """Create the LangChain chat model for a ranking config."""
    return init_chat_model(
        model=config.llm.model,
        model_provider=config.llm.provider,
        temperature=config.llm.temperature,
        timeout=config.llm.timeout_s,
        max_retries=config.llm.max_retries,
    )
