"""Outfit try-on and agent checkout orchestration."""
