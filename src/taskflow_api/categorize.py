"""
Todo categorization through a language model.

A categorizer turns a todo's title/description into a single-word category
plus a confidence score. Callers decide what to do on failure: creation falls
back to the default label, an explicit categorization request reports it.
"""

from __future__ import annotations

import logging
import string
from abc import ABC, abstractmethod
from functools import lru_cache
from typing import Any, Optional

import openai
from pydantic import BaseModel, Field, ValidationError

from .errors import CategorizationError
from .settings import get_settings

taskflow_error_logger = logging.getLogger("taskflow.error")

SYSTEM_INSTRUCTION = (
    "You label todo items. Answer with a JSON object of the form "
    '{"category": "<one lowercase word>", "confidence": <number between 0 and 1>}.'
)

PROMPT_TEMPLATE = """Categorize this todo item into a single word category that best describes its type or domain.

Todo: "{title}"
{description_line}
Common categories include: work, personal, health, shopping, learning, finance, travel, home, social, etc.
Choose the most appropriate single word category."""


class CategoryResult(BaseModel):
    """Standardized answer from any categorizer."""

    category: str = Field(..., description="A single word category for the todo item")
    confidence: float = Field(..., ge=0, le=1, description="Confidence score for the categorization")


def build_prompt(title: str, description: Optional[str] = None) -> str:
    description_line = f'Description: "{description}"\n' if description else ""
    return PROMPT_TEMPLATE.format(title=title, description_line=description_line)


def normalize_category(raw: str) -> str:
    """
    Reduce a model answer to one lowercase word, stripping surrounding punctuation.
    Letters from any script are kept. Raise if nothing usable is left.
    """
    words = raw.strip().lower().split()
    word = words[0].strip(string.punctuation) if words else ""
    if not word:
        raise CategorizationError()
    return word


class Categorizer(ABC):
    """Abstract base class for categorization backends.

    Implementations must raise CategorizationError for every failure so that
    callers only ever handle that one exception.
    """

    @abstractmethod
    def categorize(self, title: str, description: Optional[str] = None) -> CategoryResult:
        ...


class OpenAICategorizer(Categorizer):
    """Categorizer backed by the OpenAI chat completions API."""

    DEFAULT_MODEL = "gpt-5-mini"

    def __init__(
        self,
        api_key: Optional[str],
        model: str = DEFAULT_MODEL,
        base_url: Optional[str] = None,
        timeout: float = 10.0,
        client: Any = None,
    ) -> None:
        self.api_key = api_key
        self.model = model or self.DEFAULT_MODEL
        self.base_url = base_url
        self.timeout = timeout
        self._client = client

    def _get_client(self) -> Any:
        if self._client is None:
            kwargs: dict[str, Any] = {"api_key": self.api_key, "timeout": self.timeout, "max_retries": 0}
            if self.base_url:
                kwargs["base_url"] = self.base_url
            self._client = openai.OpenAI(**kwargs)
        return self._client

    def is_available(self) -> bool:
        return bool(self.api_key) or self._client is not None

    def categorize(self, title: str, description: Optional[str] = None) -> CategoryResult:
        if not self.is_available():
            raise CategorizationError("Categorization service is not configured")

        # Any failure, from building the client to reading the answer, is a categorization failure
        try:
            response = self._get_client().chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": SYSTEM_INSTRUCTION},
                    {"role": "user", "content": build_prompt(title, description)},
                ],
                response_format={"type": "json_object"},
                timeout=self.timeout,
            )
            choice = response.choices[0] if response.choices else None
            content = choice.message.content if choice else None
            if not content:
                raise CategorizationError()
            result = CategoryResult.model_validate_json(content)
            return CategoryResult(category=normalize_category(result.category), confidence=result.confidence)
        except CategorizationError:
            taskflow_error_logger.warning("Categorization answer was empty or unusable")
            raise
        except ValidationError as error:
            taskflow_error_logger.warning(f"Categorization answer could not be parsed: {error}")
            raise CategorizationError() from error
        except Exception as error:
            taskflow_error_logger.warning(f"Categorization request failed: {error!r}")
            raise CategorizationError() from error


@lru_cache
def _build_categorizer(
    api_key: Optional[str], model: str, base_url: Optional[str], timeout: float
) -> Categorizer:
    return OpenAICategorizer(api_key=api_key, model=model, base_url=base_url, timeout=timeout)


# PUBLIC_INTERFACE
def get_categorizer() -> Categorizer:
    """Return the categorizer configured by settings."""
    settings = get_settings()
    return _build_categorizer(
        settings.openai_api_key,
        settings.openai_model,
        settings.openai_base_url,
        settings.categorize_timeout_seconds,
    )
