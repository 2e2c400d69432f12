"""
Recipe and auth data models for the Recipes Service.
"""

from typing import List
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class RecipeDraft(BaseModel):
    """Client-supplied recipe fields (everything but identity and timestamp)."""
    name: str = Field("", description="Recipe name")
    tags: List[str] = Field(default_factory=list, description="Tags, matched case-insensitively")
    ingredients: List[str] = Field(default_factory=list, description="Ingredients in order")
    instructions: List[str] = Field(default_factory=list, description="Preparation steps in order")


class Recipe(RecipeDraft):
    """A persisted recipe."""
    id: str = Field(..., description="Identity assigned by the record store")
    published_at: datetime = Field(..., description="Server-assigned publication time")

    @classmethod
    def from_draft(cls, record_id: str, draft: RecipeDraft, published_at: datetime) -> "Recipe":
        return cls(
            id=record_id,
            published_at=published_at,
            **draft.model_dump()
        )


class MessageResponse(BaseModel):
    """Plain acknowledgement for update and delete."""
    message: str


class SignInRequest(BaseModel):
    """Request model for sign in."""
    username: str = Field(..., description="Account name")
    password: str = Field(..., description="Plaintext password")


class TokenResponse(BaseModel):
    """Signed token plus its absolute expiry."""
    model_config = ConfigDict(populate_by_name=True)

    token: str
    expires_at: datetime = Field(..., alias="expiresAt")
