"""Schemas for planner session endpoints."""
from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field


class SessionCreateRequest(BaseModel):
    context_goal: Optional[str] = Field(default=None, max_length=500)
    query: Optional[str] = Field(default=None, max_length=1000)
    num_days: Optional[int] = None


class SessionUpdateRequest(BaseModel):
    query: Optional[str] = Field(default=None, max_length=1000)
    num_days: Optional[int] = None
    context_goal: Optional[str] = Field(default=None, max_length=500)


class SuggestedTaskPayload(BaseModel):
    id: str
    title: str
    description: str
    suggested_deadline: Optional[str] = None


class SessionSnapshot(BaseModel):
    session_id: str
    state: str
    query: str
    num_days: int
    context_goal: Optional[str]
    is_loading: bool
    suggested_tasks: List[SuggestedTaskPayload]
    error_message: Optional[str]
    notice: Optional[str]
    editing_task_id: Optional[str]
    edited_task_text: str
    feedback_requested: bool
    smart_default: Optional[str]
    request_id: str


class ResetRequest(BaseModel):
    clear_query: bool = True


class EditStartRequest(BaseModel):
    task_id: str


class EditTextRequest(BaseModel):
    text: str


class IdeaRequest(BaseModel):
    idea: str


class LabelRequest(BaseModel):
    label: str


class AcceptResponse(BaseModel):
    success: bool
    message: str
    accepted_tasks: List[SuggestedTaskPayload]
    session: SessionSnapshot
    request_id: str


class SuggestionsResponse(BaseModel):
    query: str
    suggestions: List[str]
    request_id: str


class TemplatePayload(BaseModel):
    label: str
    prompt: str
    days: int


class ShortcutPayload(BaseModel):
    label: str
    days: int
    prompt: Optional[str] = None


class CatalogResponse(BaseModel):
    ideas: List[str]
    templates: List[TemplatePayload]
    shortcuts: List[ShortcutPayload]
    recent_ideas: List[str]
    request_id: str
