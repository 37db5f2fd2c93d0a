import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

from habit_garden.services.suggestion_service import (
    CONNECTION_ERROR,
    NO_IDEAS,
    SuggestionService,
    build_prompt,
    parse_suggestions,
)


def _client_returning(content):
    client = MagicMock()
    response = SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])
    client.chat.completions.create = AsyncMock(return_value=response)
    return client


def test_prompt_mentions_existing_habits():
    prompt = build_prompt(["Read", "Walk"], 5)
    assert "Read, Walk" in prompt
    assert "suggest 5 new, related habits" in prompt


def test_prompt_for_new_users():
    assert build_prompt([], 3).startswith("Suggest 3 simple, positive daily habits")


def test_parse_strips_numbering_and_blanks():
    text = "1. Drink water\n\n2.  Stretch for 5 minutes \n10. Journal\n"
    assert parse_suggestions(text) == ["Drink water", "Stretch for 5 minutes", "Journal"]


def test_suggest_habits_uses_model_output():
    client = _client_returning("1. Meditate\n2. Floss")
    service = SuggestionService(client=client, model="test-model")

    ideas = asyncio.run(service.suggest_habits(["Read"], count=2))

    assert ideas == ["Meditate", "Floss"]
    kwargs = client.chat.completions.create.await_args.kwargs
    assert kwargs["model"] == "test-model"
    assert "Read" in kwargs["messages"][0]["content"]


def test_empty_answer_gives_apology():
    service = SuggestionService(client=_client_returning(""))
    assert asyncio.run(service.suggest_habits([])) == [NO_IDEAS]


def test_failure_gives_connection_message():
    client = MagicMock()
    client.chat.completions.create = AsyncMock(side_effect=RuntimeError("boom"))
    service = SuggestionService(client=client)
    assert asyncio.run(service.suggest_habits(["Read"])) == [CONNECTION_ERROR]
