from sqlmodel import Field, SQLModel, Relationship
from datetime import datetime, timezone
from typing import List, TYPE_CHECKING
from uuid import uuid4

if TYPE_CHECKING:
    from .post import Post
    from .saved_post import SavedPost


def new_id() -> str:
    return uuid4().hex


class UserBase(SQLModel):
    username: str = Field(index=True, unique=True)
    email: str = Field(index=True, unique=True)
    avatar: str | None = Field(default=None)


class User(UserBase, table=True):
    id: str = Field(default_factory=new_id, primary_key=True)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    posts: List["Post"] = Relationship(back_populates="user")
    saved_posts: List["SavedPost"] = Relationship(
        back_populates="user",
        sa_relationship_kwargs={"cascade": "all, delete-orphan"}
    )


class PostOwner(SQLModel):
    """Owner profile embedded in listing details"""
    username: str
    avatar: str | None = None
