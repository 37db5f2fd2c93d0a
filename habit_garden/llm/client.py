# File: habit_garden/llm/client.py

from openai import AsyncOpenAI
from ..config import settings

def get_openai_client() -> AsyncOpenAI:
    # The SDK refuses an empty key at construction; requests fail later instead.
    return AsyncOpenAI(
        base_url=settings.LLM_BASE_URL,
        api_key=settings.LLM_API_KEY or "not-configured",
    )
