"""Aura - ambient mix playback and scheduling for retail terminals."""

__version__ = "0.1.0"
