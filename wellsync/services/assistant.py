"""
Chat assistant: visible transcript plus model-side history. send_message()
updates the transcript right away (user message + "..." placeholder) and
completes in a background task that swaps the placeholder for the reply.
"""
from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

from wellsync.schemas.chat import ChatMessage
from wellsync.services.gemini_common import error_text, make_model, response_text, run_gemini
from wellsync.services.preferences_repository import PreferencesRepository
from wellsync.services.profile_repository import ProfileRepository
from wellsync.services.wellness_context import chat_context_prompt
from wellsync.services.wellness_repository import WellnessRepository

logger = logging.getLogger(__name__)

GREETING = (
    "Hello! I'm your wellness assistant. How can I help you today? "
    "Feel free to ask about your progress, habits, or for any recommendations."
)
CONTEXT_ACK = "Okay, I have the user's wellness data. I will use it to provide personalized advice. Let's begin."
PROCESSING_TEXT = "..."
EMPTY_REPLY = "Sorry, I couldn't process that. Please try again."


class ChatAssistant:
    def __init__(
        self,
        wellness: WellnessRepository,
        profiles: ProfileRepository,
        preferences: PreferencesRepository,
        model_factory: Callable[[], object] = make_model,
    ) -> None:
        self.wellness = wellness
        self.profiles = profiles
        self.preferences = preferences
        self.model_factory = model_factory
        self.messages: list[ChatMessage] = [ChatMessage(GREETING, is_from_user=False)]
        self._history: list[dict] = []
        self._tasks: set[asyncio.Task] = set()

    def send_message(self, text: str) -> asyncio.Task | None:
        """
        Append the user message and a processing placeholder, then schedule the
        model call. Must be called from inside the running event loop. Blank
        input is ignored and returns None.
        """
        user_text = (text or "").strip()
        if not user_text:
            return None
        placeholder = ChatMessage(PROCESSING_TEXT, is_from_user=False, is_processing=True)
        self.messages = self.messages + [ChatMessage(user_text, is_from_user=True), placeholder]
        task = asyncio.get_running_loop().create_task(self._complete(user_text, placeholder))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def _replace(self, placeholder: ChatMessage, message: ChatMessage) -> None:
        for i, m in enumerate(self.messages):
            if m is placeholder:
                self.messages = self.messages[:i] + [message] + self.messages[i + 1:]
                return
        self.messages = self.messages + [message]

    async def _complete(self, user_text: str, placeholder: ChatMessage) -> str:
        try:
            profile = await self.profiles.get_profile()
            entries = await self.wellness.list_entries()
            unit = await self.preferences.weight_unit()
            context = chat_context_prompt(entries, profile, unit)
            model = self.model_factory()
            chat = model.start_chat(
                history=[
                    {"role": "user", "parts": [context]},
                    {"role": "model", "parts": [CONTEXT_ACK]},
                    *self._history,
                ]
            )
            response = await run_gemini(lambda: chat.send_message(user_text))
            reply = response_text(response) or EMPTY_REPLY
        except Exception as e:
            logger.warning("Chat completion failed: %s", e)
            reply = error_text(e)
            self._replace(placeholder, ChatMessage(reply, is_from_user=False))
            return reply

        self._history.append({"role": "user", "parts": [user_text]})
        self._history.append({"role": "model", "parts": [reply]})
        self._replace(placeholder, ChatMessage(reply, is_from_user=False))
        return reply
