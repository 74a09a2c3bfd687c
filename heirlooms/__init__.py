"""Heirlooms: turn photos, voice notes and notes into catalogued artifacts."""

__version__ = "0.1.0"
