"""Wellness tracking with phone/watch sync and an AI assistant."""
