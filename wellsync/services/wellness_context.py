"""Text summaries of the user's profile and history for the assistant prompts."""
from __future__ import annotations

from wellsync.schemas.profile import UserProfile
from wellsync.schemas.questions import QUESTION_TABLE
from wellsync.schemas.wellness import WellnessEntry
from wellsync.services.units import display_weight

CHAT_HISTORY_LIMIT = 30
SUGGESTION_HISTORY_LIMIT = 7


def entry_line(entry: WellnessEntry, unit: str) -> str:
    parts = [f"- Date: {entry.timestamp}", f"Weight: {display_weight(entry.weight, unit)} {unit}"]
    for spec in QUESTION_TABLE:
        value = getattr(entry, spec.field)
        parts.append(f"{spec.label}: {value if value is not None else 'N/A'}")
    return ", ".join(parts)


def history_summary(entries: list[WellnessEntry], unit: str) -> str:
    if not entries:
        return "The user has no wellness data logged yet."
    return "\n".join(entry_line(e, unit) for e in entries)


def profile_summary(profile: UserProfile | None, unit: str, with_name: bool = True) -> str:
    if profile is None:
        return "The user's profile information (name, age, target weight) is not available."
    parts = []
    if with_name:
        parts.append(f"The user's name is {profile.first_name}.")
    if profile.age is not None:
        parts.append(f"Their age is {profile.age}.")
    if profile.target_weight is not None:
        parts.append(f"Their target weight is {display_weight(profile.target_weight, unit)} {unit}.")
    return " ".join(parts)


def chat_context_prompt(entries: list[WellnessEntry], profile: UserProfile | None, unit: str) -> str:
    return f"""You are a friendly and encouraging wellness assistant named 'Andy'. The user will ask you questions about their health and progress.
Use the following user profile and historical wellness data to provide personalized, insightful, and supportive responses.
Your goal is to help the user understand their trends and motivate them to achieve their goals.
Keep your answers concise and easy to understand.

User Profile:
{profile_summary(profile, unit)}

Here is the user's most recent data (up to {CHAT_HISTORY_LIMIT} entries):
{history_summary(entries[:CHAT_HISTORY_LIMIT], unit)}"""


def suggestions_prompt(entries: list[WellnessEntry], profile: UserProfile | None, unit: str) -> str:
    user_context = profile_summary(profile, unit, with_name=False) if profile else ""
    return f"""Based on the following user information and recent wellness data:
{user_context}

Recent Data:
{history_summary(entries[:SUGGESTION_HISTORY_LIMIT], unit)}

Please provide 3 very short, encouraging, and actionable suggestions or motivational tips to
help them improve their habits. The tone should be positive and supportive. Format the output
as a simple, un-numbered list, with each tip on a new line starting with a dash."""
