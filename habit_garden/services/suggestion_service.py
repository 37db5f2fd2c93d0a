from __future__ import annotations
import re
from typing import List, Sequence

from loguru import logger
from openai import AsyncOpenAI

from ..config import settings
from ..llm.client import get_openai_client

NO_IDEAS = "Sorry, I couldn't come up with anything right now."
CONNECTION_ERROR = "Sorry, there was an error connecting to the AI."

_NUMBERING = re.compile(r"^\d+\.\s*")


def build_prompt(existing_names: Sequence[str], count: int) -> str:
    names = [n for n in existing_names if n]
    if names:
        return (
            f"Based on these existing habits: {', '.join(names)}, "
            f"suggest {count} new, related habits. Format as a numbered list."
        )
    return (
        f"Suggest {count} simple, positive daily habits for someone just starting out. "
        "Format as a numbered list."
    )


def parse_suggestions(text: str) -> List[str]:
    """Turn a numbered list into plain lines, dropping blanks."""
    ideas = (_NUMBERING.sub("", line).strip() for line in (text or "").split("\n"))
    return [idea for idea in ideas if idea]


class SuggestionService:
    """
    Asks the language model for habit ideas. Failures never propagate: the
    caller gets a single apology line it can show instead of suggestions.
    """

    def __init__(self, client: AsyncOpenAI | None = None, model: str | None = None):
        self._client = client
        self.model = model or settings.LLM_MODEL_ID

    @property
    def client(self) -> AsyncOpenAI:
        if self._client is None:
            self._client = get_openai_client()
        return self._client

    async def complete(self, prompt: str) -> str:
        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
                temperature=0.7,
            )
            if not response or not response.choices or not response.choices[0].message.content:
                return NO_IDEAS
            return response.choices[0].message.content
        except Exception as e:
            logger.exception(f"Suggestion request failed: {e}")
            return CONNECTION_ERROR

    async def suggest_habits(self, existing_names: Sequence[str], count: int | None = None) -> List[str]:
        prompt = build_prompt(existing_names, count or settings.SUGGESTION_COUNT)
        return parse_suggestions(await self.complete(prompt))
