from .user import User, PostOwner
from .post import Post, PostCreate, PostPublic, PostDetail, PostType, PropertyType
from .saved_post import SavedPost
from .response import BasicResponse

__all__ = [
    "User", "PostOwner",
    "Post", "PostCreate", "PostPublic", "PostDetail", "PostType", "PropertyType",
    "SavedPost",
    "BasicResponse",
]
