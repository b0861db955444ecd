from sqlmodel import Field, SQLModel, Relationship
from sqlalchemy import Column, JSON
from pydantic import ConfigDict, field_validator
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional, TYPE_CHECKING
import re
from .user import PostOwner, new_id

if TYPE_CHECKING:
    from .user import User
    from .saved_post import SavedPost

# leading integer of a loosely formatted number, "3rooms" -> 3
LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


class PostType(str, Enum):
    BUY = "buy"
    RENT = "rent"


class PropertyType(str, Enum):
    APARTMENT = "apartment"
    HOUSE = "house"
    CONDO = "condo"
    LAND = "land"


class PostBase(SQLModel):
    title: str
    price: int = Field(index=True)
    address: str
    city: str | None = Field(default=None, index=True)
    bedroom: int = Field(index=True)
    bathroom: int | None = Field(default=None)
    latitude: str | None = Field(default=None)
    longitude: str | None = Field(default=None)
    type: str | None = Field(default=None, index=True)
    property: str | None = Field(default=None, index=True)

    # Listing details
    desc: str | None = Field(default=None)
    floor: int | None = Field(default=None)
    parking: str | None = Field(default=None)
    size: int | None = Field(default=None)
    school: int | None = Field(default=None)  # distance in metres
    bus: int | None = Field(default=None)  # distance in metres
    contact: str | None = Field(default=None)


class Post(PostBase, table=True):
    id: str = Field(default_factory=new_id, primary_key=True)
    images: List[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    user_id: str = Field(foreign_key="user.id", index=True, ondelete="CASCADE")
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    # Relationships
    user: "User" = Relationship(back_populates="posts")
    saved_by: List["SavedPost"] = Relationship(
        back_populates="post",
        sa_relationship_kwargs={"cascade": "all, delete-orphan"}
    )


class PostPublic(PostBase):
    id: str
    images: List[str]
    user_id: str
    created_at: datetime


class PostDetail(PostPublic):
    model_config = ConfigDict(populate_by_name=True)

    user: PostOwner
    is_saved: bool = Field(default=False, alias="isSaved")


class PostCreate(SQLModel):
    """Listing payload, required fields are checked by validate_post_payload"""
    title: str | None = None
    price: int | None = None
    images: List[str] | None = None
    address: str | None = None
    city: str | None = None
    bedroom: int | None = None
    bathroom: int | None = None
    latitude: str | None = None
    longitude: str | None = None
    type: Optional[PostType] = None
    property: Optional[PropertyType] = None
    desc: str | None = None
    floor: int | None = None
    parking: str | None = None
    size: int | None = None
    school: int | None = None
    bus: int | None = None
    contact: str | None = None

    @field_validator("latitude", "longitude", mode="before")
    @classmethod
    def coordinates_as_text(cls, value):
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator("bedroom", "bathroom", mode="before")
    @classmethod
    def leading_integer(cls, value):
        # "2.5" and 2.5 both count as 2 rooms
        if isinstance(value, float):
            return int(value)
        if isinstance(value, str):
            match = LEADING_INT.match(value)
            if match:
                return int(match.group(1))
        return value
