"""
Project-scoped collection records.

These mirror the records the research backend stores per project. The
orchestrator never owns a project; it only appends to these collections
through the data router.
"""

import uuid
from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class Reference(BaseModel):
    """An academic reference attached to a project."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    title: str
    authors: str = ""
    url: Optional[str] = None
    content: str = ""
    added_at: str = Field(default_factory=_now_iso)


class VariableInfo(BaseModel):
    """A variable discovered in analysis code."""

    name: str
    type_name: str = "unknown"
    shape: Optional[str] = None
    purpose: str = ""
    example_value: str = ""
    source: str = "code"
    updated_at: Optional[str] = None
    related_to: List[str] = Field(default_factory=list)
    visibility: str = "public"  # "public", "hidden", "system"
    units: Optional[str] = None
    tags: List[str] = Field(default_factory=list)


class Library(BaseModel):
    """A Python library required by analysis code."""

    name: str
    version: Optional[str] = None
    source: str = "auto_detected"  # "auto_detected", "manual", "requirements"
    status: str = "pending"  # "pending", "installed", "failed"
    installed_at: Optional[str] = None
    error_message: Optional[str] = None
    required_by: List[str] = Field(default_factory=list)


class Question(BaseModel):
    """A research question attached to a project."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    question: str
    answer: Optional[str] = None
    category: str = "initial"  # "initial", "follow_up", "clarification"
    created_at: str = Field(default_factory=_now_iso)
    answered_at: Optional[str] = None
    status: str = "pending"  # "pending", "answered", "skipped"
    related_to: List[str] = Field(default_factory=list)


class DataFile(BaseModel):
    """A data file produced for a project."""

    filename: str
    content: str = ""
    description: str = ""

    @field_validator("filename")
    @classmethod
    def validate_filename(cls, v: str) -> str:
        """Reject empty names and path components."""
        v = v.strip()
        if not v:
            raise ValueError("Filename cannot be empty")
        if "/" in v or "\\" in v:
            raise ValueError(f"Filename must not contain path separators: {v}")
        return v


class ProjectHandle(BaseModel):
    """
    Handle to an externally owned research project.

    Unknown fields returned by the backend are preserved.
    """

    model_config = ConfigDict(extra="allow")

    id: str
    name: str = ""
    goal: str = ""
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    data_files: List[str] = Field(default_factory=list)
    images: List[str] = Field(default_factory=list)
    references: List[Reference] = Field(default_factory=list)
    variables: List[VariableInfo] = Field(default_factory=list)
    questions: List[Question] = Field(default_factory=list)
    libraries: List[Library] = Field(default_factory=list)
    write_up: str = ""
    session_id: Optional[str] = None
    session_status: Optional[str] = None
