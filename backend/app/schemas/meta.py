"""
Twinshot Backend — Daily Prompt Schemas
========================================
"""

from pydantic import BaseModel, Field


class PromptResponse(BaseModel):
    prompt: str


class PromptUpdate(BaseModel):
    prompt: str = Field(max_length=500)
