"""
Data Schemas for the Portfolio app

Each Pydantic model mirrors a record handled by the hosted backend or a
static piece of page content.

Records:
- Project: portfolio projects (table "projects")
- AdminUser / Session: the signed-in admin, as returned by the auth provider
- Skill: hard-coded skill bars shown on the home page
"""
from pydantic import BaseModel, Field, field_validator
from typing import Optional, List, Literal
from datetime import datetime

ProjectCategory = Literal["devops", "backend", "frontend", "automation", "fullstack"]
SkillCategory = Literal["languages", "devops", "cloud", "databases", "tools"]

PROJECT_CATEGORIES: List[str] = ["devops", "backend", "frontend", "automation", "fullstack"]


class ProjectCreate(BaseModel):
    title: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1, description="One-line summary")
    long_description: Optional[str] = None
    stack: List[str] = Field(..., min_length=1, description="Ordered technology tags")
    category: ProjectCategory
    github_url: Optional[str] = None
    demo_url: Optional[str] = None
    image_url: Optional[str] = None
    featured: bool = False

    @field_validator("stack")
    @classmethod
    def stack_entries_not_blank(cls, v: List[str]) -> List[str]:
        if any(not tag.strip() for tag in v):
            raise ValueError("stack entries must not be blank")
        return v


class Project(ProjectCreate):
    id: str = Field(..., description="Server-assigned identifier")
    created_at: datetime

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v):
        return str(v) if v is not None else v


class AdminUser(BaseModel):
    id: str
    email: str = ""


class Session(BaseModel):
    access_token: str
    refresh_token: str
    expires_at: Optional[int] = Field(None, description="Unix timestamp of access token expiry")
    user: AdminUser


class Skill(BaseModel):
    name: str
    level: int = Field(..., ge=0, le=100)
    category: SkillCategory
    icon: Optional[str] = None
