from typing import Annotated, List
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlmodel import select
from sqlalchemy.exc import SQLAlchemyError
from prometheus_client import Counter
import logging

from models import User, Post, PostPublic, PostDetail, SavedPost, BasicResponse
from dependencies import (
    SessionDep, CurrentUserId, OptionalUserId, ValidPostCreate,
    limit_post_creation, parse_int_filter, add_saved_status
)

router = APIRouter()
logger = logging.getLogger(__name__)

# OverflowError: integers the database column cannot hold
STORE_ERRORS = (SQLAlchemyError, OverflowError)

posts_created_total = Counter(
    "listing_posts_created_total",
    "Total number of listings created"
)


@router.get("", response_model=List[PostPublic])
async def get_posts(
    session: SessionDep,
    city: str | None = None,
    post_type: Annotated[str | None, Query(alias="type")] = None,
    property_type: Annotated[str | None, Query(alias="property")] = None,
    bedroom: str | None = None,
    min_price: Annotated[str | None, Query(alias="minPrice")] = None,
    max_price: Annotated[str | None, Query(alias="maxPrice")] = None,
):
    """Get all listings matching the optional filters"""
    statement = select(Post)
    if city:
        statement = statement.where(Post.city == city)
    if post_type:
        statement = statement.where(Post.type == post_type)
    if property_type:
        statement = statement.where(Post.property == property_type)

    bedrooms = parse_int_filter(bedroom)
    if bedrooms is not None:
        statement = statement.where(Post.bedroom == bedrooms)

    lowest = parse_int_filter(min_price)
    if lowest is not None:
        statement = statement.where(Post.price >= lowest)
    highest = parse_int_filter(max_price)
    if highest is not None:
        statement = statement.where(Post.price <= highest)

    try:
        return session.exec(statement).all()
    except STORE_ERRORS as e:
        logger.error(f"Error in get_posts: {str(e)}", exc_info=True)
        if session.in_transaction():
            session.rollback()
        raise HTTPException(status_code=500, detail="Failed to get posts")


@router.get("/{post_id}", response_model=PostDetail)
async def get_post(
    post_id: str,
    session: SessionDep,
    user_id: OptionalUserId,
) -> PostDetail:
    """Get a listing with its owner, and whether the caller saved it"""
    try:
        post = session.get(Post, post_id)
        if not post:
            raise HTTPException(status_code=404, detail="Post not found")

        is_saved = False
        if user_id:
            saved = session.get(SavedPost, {"user_id": user_id, "post_id": post_id})
            is_saved = saved is not None

        return add_saved_status(post, is_saved)
    except STORE_ERRORS as e:
        logger.error(f"Error in get_post {post_id}: {str(e)}", exc_info=True)
        if session.in_transaction():
            session.rollback()
        raise HTTPException(status_code=500, detail="Failed to get post")


@router.post(
    "",
    response_model=PostPublic,
    status_code=201,
    dependencies=[Depends(limit_post_creation)]
)
async def create_post(
    post: ValidPostCreate,
    session: SessionDep,
    user_id: CurrentUserId,
) -> PostPublic:
    """Create a new listing owned by the current user"""
    try:
        if not session.get(User, user_id):
            raise HTTPException(status_code=404, detail="User not found.")

        post_db = Post.model_validate(post.model_dump(mode="json"), update={"user_id": user_id})

        session.add(post_db)
        session.commit()
        session.refresh(post_db)
    except STORE_ERRORS as e:
        logger.error(f"Error in create_post: {str(e)}", exc_info=True)
        if session.in_transaction():
            session.rollback()
        raise HTTPException(status_code=500, detail="Failed to create post")

    posts_created_total.inc()
    logger.info(f"Post {post_db.id} created by user {user_id}")
    return post_db


@router.delete("/{post_id}", response_model=BasicResponse)
async def delete_post(
    post_id: str,
    session: SessionDep,
    user_id: CurrentUserId,
):
    """Delete a listing, only its owner may do so"""
    try:
        post = session.get(Post, post_id)
        if not post:
            raise HTTPException(status_code=404, detail="Post not found")
        if post.user_id != user_id:
            raise HTTPException(status_code=403, detail="Not Authorized!")

        session.delete(post)
        session.commit()
    except STORE_ERRORS as e:
        logger.error(f"Error in delete_post {post_id}: {str(e)}", exc_info=True)
        if session.in_transaction():
            session.rollback()
        raise HTTPException(status_code=500, detail="Failed to delete post")

    logger.info(f"Post {post_id} deleted by user {user_id}")
    return {"message": "Post deleted"}
