"""One-shot "generate suggestions" from the recent wellness history."""
from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field, replace

from wellsync.services.gemini_common import error_text, make_model, response_text, run_gemini
from wellsync.services.preferences_repository import PreferencesRepository
from wellsync.services.profile_repository import ProfileRepository
from wellsync.services.wellness_context import SUGGESTION_HISTORY_LIMIT, suggestions_prompt
from wellsync.services.wellness_repository import WellnessRepository

logger = logging.getLogger(__name__)

NOT_ENOUGH_DATA = "Not enough data to generate suggestions. Please add more entries."
NO_RESPONSE_TEXT = "No response text found."


@dataclass(frozen=True)
class SuggestionState:
    suggestions: list[str] = field(default_factory=list)
    is_loading: bool = False
    error: str | None = None
    user_first_name: str | None = None


def parse_suggestions(text: str) -> list[str]:
    """Lines starting with '-' become suggestions (dash and whitespace stripped); other lines are dropped."""
    out = []
    for line in (text or "").split("\n"):
        stripped = line.strip()
        if stripped.startswith("-"):
            out.append(stripped[1:].strip())
    return out


class SuggestionService:
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
        self.state = SuggestionState()

    async def load_user_name(self) -> SuggestionState:
        profile = await self.profiles.get_profile()
        if profile is not None:
            self.state = replace(self.state, user_first_name=profile.first_name)
        return self.state

    async def generate(self) -> SuggestionState:
        self.state = replace(self.state, is_loading=True, error=None)
        try:
            entries = await self.wellness.recent(SUGGESTION_HISTORY_LIMIT)
            if not entries:
                self.state = replace(self.state, suggestions=[NOT_ENOUGH_DATA], is_loading=False)
                return self.state
            profile = await self.profiles.get_profile()
            unit = await self.preferences.weight_unit()
            prompt = suggestions_prompt(entries, profile, unit)
            model = self.model_factory()
            response = await run_gemini(lambda: model.generate_content(prompt))
            text = response_text(response) or NO_RESPONSE_TEXT
            self.state = replace(self.state, suggestions=parse_suggestions(text), is_loading=False)
        except Exception as e:
            logger.warning("Suggestion generation failed: %s", e)
            self.state = replace(self.state, error=error_text(e), is_loading=False)
        return self.state
