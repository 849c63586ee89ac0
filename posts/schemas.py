# src/posts/schemas.py
from pydantic import BaseModel, Field
from datetime import datetime
from typing import List, Optional

class PostCreate(BaseModel):
    """Schema for creating a post from a JSON body."""
    content: Optional[str] = None
    image: Optional[str] = None


class PostAuthor(BaseModel):
    id: int
    username: str

    class Config:
        from_attributes = True


class CommentCreate(BaseModel):
    """Schema for creating a comment."""
    text: Optional[str] = None


class CommentResponse(BaseModel):
    user_id: int
    username: str
    text: str
    created_at: datetime

    class Config:
        from_attributes = True


class PostResponse(BaseModel):
    """Schema for post response."""
    id: int
    user_id: int
    user: PostAuthor
    content: Optional[str]
    image: Optional[str]
    likes: List[int]
    likes_count: int
    comments: List[CommentResponse]
    comments_count: int
    created_at: datetime

    @classmethod
    def from_orm(cls, obj):
        return cls(
            id=obj.id,
            user_id=obj.user_id,
            user=PostAuthor.model_validate(obj.user),
            content=obj.content,
            image=obj.image,
            likes=obj.likes,
            likes_count=len(obj.likes_rel),
            comments=[CommentResponse.model_validate(c) for c in obj.comments],
            comments_count=len(obj.comments),
            created_at=obj.created_at,
        )


class Pagination(BaseModel):
    current_page: int = Field(..., alias="currentPage")
    total_pages: int = Field(..., alias="totalPages")
    total_posts: int = Field(..., alias="totalPosts")
    has_more: bool = Field(..., alias="hasMore")

    class Config:
        populate_by_name = True


class PostListResponse(BaseModel):
    posts: List[PostResponse]
    pagination: Pagination


class PostCreateResponse(BaseModel):
    message: str
    post: PostResponse


class LikeResponse(BaseModel):
    message: str
    post: PostResponse
    likes_count: int = Field(..., alias="likesCount")
    liked: bool

    class Config:
        populate_by_name = True


class CommentAddResponse(BaseModel):
    message: str
    post: PostResponse
    comments_count: int = Field(..., alias="commentsCount")

    class Config:
        populate_by_name = True
