# src/posts/routes.py
import json

from fastapi import APIRouter, Depends, Query, Request, status
from pydantic import ValidationError as SchemaValidationError
from sqlalchemy.orm import Session
from starlette.datastructures import UploadFile

from auth.models import User
from auth.routes import get_current_user
from config import settings
from database import get_db
from exceptions import ValidationError
from posts.schemas import (
    PostCreate, PostResponse, PostListResponse, PostCreateResponse, Pagination,
    CommentCreate, CommentAddResponse, LikeResponse,
)
from posts.services import PostService, CommentService

router = APIRouter(prefix="/posts", tags=["posts"])


async def read_post_payload(request: Request):
    """Accept either a JSON body or a multipart form with an optional `media` file."""
    content_type = request.headers.get("content-type", "")
    if content_type.startswith("multipart/form-data") or content_type.startswith("application/x-www-form-urlencoded"):
        form = await request.form()
        media = form.get("media")
        if not isinstance(media, UploadFile) or not media.filename:
            media = None
        content = form.get("content")
        image = form.get("image")
        return PostCreate(
            content=content if isinstance(content, str) else None,
            image=image if isinstance(image, str) else None,
        ), media

    body = await request.body()
    if not body:
        return PostCreate(), None
    try:
        return PostCreate.model_validate(json.loads(body)), None
    except (ValueError, SchemaValidationError):
        raise ValidationError("Request body must be a JSON object with optional content and image strings")


@router.post("", response_model=PostCreateResponse, status_code=status.HTTP_201_CREATED)
async def create_post(
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
) -> PostCreateResponse:
    """Create a post with text, a media URL or an uploaded image/video."""
    post_data, media = await read_post_payload(request)
    post = await PostService.create_post(
        user_id=current_user.id,
        content=post_data.content,
        image=post_data.image,
        file=media,
        db=db
    )
    return PostCreateResponse(message="Post created successfully", post=PostResponse.from_orm(post))

@router.get("", response_model=PostListResponse)
def get_posts(
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    db: Session = Depends(get_db)
) -> PostListResponse:
    """Retrieve the feed, newest first."""
    posts, pagination = PostService.get_posts(page, limit, db)
    return PostListResponse(
        posts=[PostResponse.from_orm(post) for post in posts],
        pagination=Pagination(**pagination),
    )

@router.get("/{post_id}", response_model=PostResponse)
def get_post(post_id: int, db: Session = Depends(get_db)) -> PostResponse:
    """Retrieve a post by ID."""
    return PostResponse.from_orm(PostService.get_post(post_id, db))

@router.put("/{post_id}/like", response_model=LikeResponse)
def toggle_like(
    post_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
) -> LikeResponse:
    """Toggle the current user's like on a post."""
    post, liked = PostService.toggle_like(post_id, current_user.id, db)
    return LikeResponse(
        message="Post liked" if liked else "Post unliked",
        post=PostResponse.from_orm(post),
        likes_count=post.like_count,
        liked=liked,
    )

@router.post("/{post_id}/comment", response_model=CommentAddResponse)
def add_comment(
    post_id: int,
    comment_data: CommentCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
) -> CommentAddResponse:
    """Add a comment to a post."""
    post, comments_count = CommentService.add_comment(post_id, comment_data.text, current_user.id, db)
    return CommentAddResponse(
        message="Comment added successfully",
        post=PostResponse.from_orm(post),
        comments_count=comments_count,
    )
