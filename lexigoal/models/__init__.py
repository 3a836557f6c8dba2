"""Shared enums and pydantic base model."""
