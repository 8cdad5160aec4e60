"""
Request models for organizations, projects and invitations.
"""
from datetime import date
from typing import Optional

from pydantic import BaseModel, Field, field_validator


def _clean_email(value: str) -> str:
    value = value.strip()
    if "@" not in value or value.startswith("@") or value.endswith("@"):
        raise ValueError("must be a valid email address")
    return value


class OrganizationCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)


class ProjectCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None


class ProjectMemberAdd(BaseModel):
    email: str

    @field_validator("email")
    @classmethod
    def valid_email(cls, v: str) -> str:
        return _clean_email(v)


class InviteRequest(BaseModel):
    email: str
    project_id: Optional[int] = None

    @field_validator("email")
    @classmethod
    def valid_email(cls, v: str) -> str:
        return _clean_email(v)


class AcceptInviteRequest(BaseModel):
    token: str = Field(..., min_length=1)
