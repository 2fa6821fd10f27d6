"""Schemas for history, feedback, preferences and account endpoints."""
from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field


class HistoryResponse(BaseModel):
    goals: List[str]
    accepted: List[str]
    smart_default: Optional[str]
    request_id: str


class FeedbackRequest(BaseModel):
    session_id: Optional[str] = None
    rating: int
    feedback: str = Field(default="", max_length=2000)


class FeedbackResponse(BaseModel):
    status: str
    request_id: str


class PreferencesResponse(BaseModel):
    dark_mode: bool
    user_id: int
    request_id: str


class PreferencesUpdateRequest(BaseModel):
    dark_mode: Optional[bool] = None


class EmailUpdateRequest(BaseModel):
    current_email: str
    new_email: str
    confirm_email: str


class EmailUpdateResponse(BaseModel):
    message: str
    request_id: str
