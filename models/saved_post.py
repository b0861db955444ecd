from sqlmodel import Field, SQLModel, Relationship
from datetime import datetime, timezone
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .post import Post
    from .user import User


class SavedPost(SQLModel, table=True):
    user_id: str = Field(foreign_key="user.id", primary_key=True, ondelete="CASCADE")
    post_id: str = Field(foreign_key="post.id", primary_key=True, ondelete="CASCADE")
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    user: "User" = Relationship(back_populates="saved_posts")
    post: "Post" = Relationship(back_populates="saved_by")
