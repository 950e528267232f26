"""Tests for the chat assistant and the suggestions generator (Gemini mocked)."""

import asyncio

import pytest

from wellsync.schemas.profile import UserProfile
from wellsync.services.assistant import GREETING, PROCESSING_TEXT, ChatAssistant
from wellsync.services.gemini_common import GeminiNotConfigured
from wellsync.services.suggestions import NOT_ENOUGH_DATA, SuggestionService, parse_suggestions


@pytest.mark.asyncio
async def test_send_message_updates_transcript_before_reply(phone, fake_model):
    assistant = phone.assistant
    assert [m.text for m in assistant.messages] == [GREETING]

    task = assistant.send_message("How am I doing?")
    assert len(assistant.messages) == 3
    assert assistant.messages[1].text == "How am I doing?"
    assert assistant.messages[1].is_from_user
    assert assistant.messages[2].text == PROCESSING_TEXT
    assert assistant.messages[2].is_processing

    assert await task == "Keep it up!"
    assert len(assistant.messages) == 3
    assert assistant.messages[2].text == "Keep it up!"
    assert not assistant.messages[2].is_processing
    assert fake_model.sent == ["How am I doing?"]


@pytest.mark.asyncio
async def test_context_carries_profile_and_history(phone, fake_model):
    await phone.profiles.save_profile(UserProfile(first_name="Sam", age=34, target_weight=75))
    await phone.entry_form.create("80", day="2024-03-10")

    await phone.assistant.send_message("hi")
    await phone.assistant.send_message("and now?")

    first, second = fake_model.histories
    context = first[0]["parts"][0]
    assert "Andy" in context
    assert "Sam" in context
    assert "2024-03-10" in context
    assert first[1]["role"] == "model"
    # the second turn replays the first exchange
    assert second[2:] == [
        {"role": "user", "parts": ["hi"]},
        {"role": "model", "parts": ["Keep it up!"]},
    ]


@pytest.mark.asyncio
async def test_blank_message_is_ignored(phone):
    assert phone.assistant.send_message("   ") is None
    assert len(phone.assistant.messages) == 1


@pytest.mark.asyncio
async def test_model_failure_becomes_error_reply(phone, model_cls):
    assistant = ChatAssistant(
        phone.wellness, phone.profiles, phone.preferences, lambda: model_cls(error=RuntimeError("quota exceeded"))
    )
    assert await assistant.send_message("hello") == "Error: quota exceeded"
    assert assistant.messages[-1].text == "Error: quota exceeded"
    assert not assistant.messages[-1].is_processing


@pytest.mark.asyncio
async def test_missing_api_key_becomes_error_reply(phone):
    def no_key():
        raise GeminiNotConfigured("GOOGLE_GEMINI_API_KEY is not set")

    assistant = ChatAssistant(phone.wellness, phone.profiles, phone.preferences, no_key)
    reply = await assistant.send_message("hello")
    assert reply == "Error: GOOGLE_GEMINI_API_KEY is not set"


def test_parse_suggestions_keeps_dash_lines():
    text = "Here are some tips:\n- Drink more water\n  -   Sleep by 11pm\n\n* not this one\n-Walk daily"
    assert parse_suggestions(text) == ["Drink more water", "Sleep by 11pm", "Walk daily"]


@pytest.mark.asyncio
async def test_suggestions_without_history(phone, fake_model):
    state = await phone.suggestions.generate()
    assert state.suggestions == [NOT_ENOUGH_DATA]
    assert state.is_loading is False
    assert state.error is None
    assert fake_model.prompts == []


@pytest.mark.asyncio
async def test_suggestions_from_recent_entries(phone, fake_model):
    fake_model.reply = "- Keep logging\n- Add a walk"
    for day in range(1, 10):
        await phone.entry_form.create("80", day=f"2024-03-{day:02d}")

    state = await phone.suggestions.generate()
    assert state.suggestions == ["Keep logging", "Add a walk"]
    assert state.error is None
    prompt = fake_model.prompts[0]
    assert "2024-03-09" in prompt
    assert "2024-03-02" not in prompt


@pytest.mark.asyncio
async def test_suggestions_error_state(phone, model_cls):
    service = SuggestionService(
        phone.wellness, phone.profiles, phone.preferences, lambda: model_cls(error=RuntimeError("boom"))
    )
    await phone.entry_form.create("80", day="2024-03-10")
    state = await service.generate()
    assert state.error == "Error: boom"
    assert state.is_loading is False


@pytest.mark.asyncio
async def test_user_name_loaded_from_profile(phone):
    await phone.profiles.save_profile(UserProfile(first_name="Sam"))
    state = await phone.suggestions.load_user_name()
    assert state.user_first_name == "Sam"


@pytest.mark.asyncio
async def test_timeout_reply_names_the_error(phone, model_cls):
    assistant = ChatAssistant(
        phone.wellness, phone.profiles, phone.preferences, lambda: model_cls(error=asyncio.TimeoutError())
    )
    assert await assistant.send_message("hello") == "Error: TimeoutError"

    service = SuggestionService(
        phone.wellness, phone.profiles, phone.preferences, lambda: model_cls(error=asyncio.TimeoutError())
    )
    await phone.entry_form.create("80", day="2024-03-10")
    assert (await service.generate()).error == "Error: TimeoutError"
