"""
Database Schemas for the Mood Art API

Each Pydantic model represents a MongoDB collection (collection name is the
lowercased class name, ``ArtPiece`` is stored in ``art``). These schemas are
used for validation when inserting into the database via the helpers in
``database.py``.
"""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator


class Mood(str, Enum):
    HAPPY = "Happy"
    SAD = "Sad"
    CALM = "Calm"
    EXCITED = "Excited"
    ANGRY = "Angry"
    INSPIRED = "Inspired"
    MIXED = "Mixed"


DEFAULT_AVATAR = "default_avatar"
DEFAULT_STYLE = "Abstract"


def avatar_for(mood: Optional[Mood]) -> str:
    if mood is None:
        return DEFAULT_AVATAR
    return f"{mood.value.lower()}_emoji"


class User(BaseModel):
    email: EmailStr = Field(..., description="User email (unique, lowercase)")
    password_hash: str = Field(..., description="BCrypt password hash")
    avatar: str = Field(DEFAULT_AVATAR, description="Mood-based avatar tag")

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, value: str) -> str:
        return value.strip().lower()


class ArtPiece(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    user_id: Optional[str] = Field(None, description="Owner user id (stringified ObjectId) or anonymous")
    mood: Mood = Field(..., description="One of the supported moods")
    image_url: str = Field(..., min_length=1, description="Public URL to the generated image")
    prompt: str = Field("", description="Diary text or template used for generation")
    style: str = Field(DEFAULT_STYLE, description="Art style, e.g. Abstract")
    colors: List[str] = Field(default_factory=list, description="Preferred colors, in order")
    votes: int = Field(0, ge=0, description="Vote counter")
    collaborators: List[str] = Field(default_factory=list, description="Collaborating user ids")

    @field_validator("prompt")
    @classmethod
    def strip_prompt(cls, value: str) -> str:
        return value.strip()

    @field_validator("collaborators")
    @classmethod
    def dedupe_collaborators(cls, value: List[str]) -> List[str]:
        return list(dict.fromkeys(value))
