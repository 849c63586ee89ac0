# src/posts/services.py
import logging
import math
import mimetypes
import os
from datetime import datetime
from typing import Optional, List, Tuple
from uuid import uuid4

import aiofiles
from fastapi import UploadFile
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, selectinload
from sqlalchemy.orm.attributes import flag_modified
from sqlalchemy.orm.exc import StaleDataError

from auth.models import User
from config import settings
from exceptions import ValidationError, NotFoundError, AuthError, ConflictError, PersistenceError
from posts.models import Post, PostLike, Comment

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024


class PostService:
    @staticmethod
    async def create_post(
            user_id: int,
            content: Optional[str],
            image: Optional[str],
            db: Session,
            file: Optional[UploadFile] = None,
    ) -> Post:
        """Create a post. At least one of content or media must be present."""
        content = (content or "").strip()
        image = (image or "").strip() or None

        if file is not None:
            PostService._validate_media(file)
        elif not content and not image:
            raise ValidationError("Post must have either text content or image")
        if len(content) > settings.MAX_POST_LENGTH:
            raise ValidationError(f"Post content cannot exceed {settings.MAX_POST_LENGTH} characters")

        saved_path = None
        if file is not None:
            saved_path = await PostService._save_media(file)
            image = f"{settings.MEDIA_URL_PREFIX}/{os.path.basename(saved_path)}"

        db_post = Post(user_id=user_id, content=content, image=image, like_count=0)
        db.add(db_post)
        try:
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            logger.error(f"Failed to create post for user {user_id}", exc_info=True)
            if saved_path and os.path.exists(saved_path):
                os.remove(saved_path)
            raise PersistenceError("Server error while creating post")
        db.refresh(db_post)
        logger.info(f"User {user_id} created post {db_post.id}")
        return db_post

    @staticmethod
    def _validate_media(file: UploadFile) -> None:
        """Check the upload is an image or video within the size limit."""
        mime_type = file.content_type
        if not mime_type or mime_type == "application/octet-stream":
            mime_type, _ = mimetypes.guess_type(file.filename or "")
        if not mime_type or not (mime_type.startswith("image/") or mime_type.startswith("video/")):
            raise ValidationError("Only image and video files are allowed")

        file.file.seek(0, 2)
        file_size = file.file.tell()
        file.file.seek(0)
        if file_size == 0:
            raise ValidationError("Uploaded file is empty")
        if file_size > settings.MAX_UPLOAD_SIZE:
            raise ValidationError(f"File size exceeds {settings.MAX_UPLOAD_SIZE // (1024 * 1024)}MB")

    @staticmethod
    async def _save_media(file: UploadFile) -> str:
        """Write the upload to MEDIA_DIR under a unique name and return its path."""
        _, ext = os.path.splitext(file.filename or "")
        if not ext:
            ext = mimetypes.guess_extension(file.content_type or "") or ""
        name = f"{int(datetime.utcnow().timestamp())}_{uuid4().hex}{ext.lower()}"
        os.makedirs(settings.MEDIA_DIR, exist_ok=True)
        path = os.path.join(settings.MEDIA_DIR, name)

        async with aiofiles.open(path, "wb") as out:
            while chunk := await file.read(CHUNK_SIZE):
                await out.write(chunk)
        return path

    @staticmethod
    def get_posts(page: int, limit: int, db: Session) -> Tuple[List[Post], dict]:
        """Return one page of the feed, newest first, with a pagination summary."""
        total_posts = db.query(Post).count()
        total_pages = math.ceil(total_posts / limit)

        # Pages past the end never reach the database; huge offsets overflow the driver.
        posts = []
        if page <= total_pages:
            posts = (
                db.query(Post)
                .options(
                    selectinload(Post.user),
                    selectinload(Post.likes_rel),
                    selectinload(Post.comments),
                )
                .order_by(Post.created_at.desc(), Post.id.asc())
                .offset((page - 1) * limit)
                .limit(limit)
                .all()
            )
        pagination = {
            "current_page": page,
            "total_pages": total_pages,
            "total_posts": total_posts,
            "has_more": page < total_pages,
        }
        return posts, pagination

    @staticmethod
    def get_post(post_id: int, db: Session) -> Post:
        post = db.query(Post).filter(Post.id == post_id).first()
        if not post:
            raise NotFoundError()
        return post

    @staticmethod
    def toggle_like(post_id: int, user_id: int, db: Session) -> Tuple[Post, bool]:
        """Like the post if the user has not liked it yet, otherwise unlike it.

        The like count is rewritten on every toggle so the post row's version
        counter is checked and bumped. A toggle that raced with another write
        to the same post is rolled back and reported as a conflict.
        """
        post = PostService.get_post(post_id, db)

        existing = next((like for like in post.likes_rel if like.user_id == user_id), None)
        if existing:
            post.likes_rel.remove(existing)
            liked = False
        else:
            post.likes_rel.append(PostLike(user_id=user_id))
            liked = True
        post.like_count = len(post.likes_rel)
        flag_modified(post, "like_count")

        try:
            db.commit()
        except (StaleDataError, IntegrityError):
            db.rollback()
            logger.warning(f"Concurrent like toggle on post {post_id} by user {user_id} rejected")
            raise ConflictError()
        except SQLAlchemyError:
            db.rollback()
            logger.error(f"Failed to toggle like on post {post_id}", exc_info=True)
            raise PersistenceError("Server error while liking post")
        db.refresh(post)
        logger.info(f"User {user_id} {'liked' if liked else 'unliked'} post {post_id}")
        return post, liked


class CommentService:
    @staticmethod
    def add_comment(post_id: int, text: Optional[str], user_id: int, db: Session) -> Tuple[Post, int]:
        """Append a comment, copying the author's current username onto it."""
        text = (text or "").strip()
        if not text:
            raise ValidationError("Comment text is required")
        if len(text) > settings.MAX_COMMENT_LENGTH:
            raise ValidationError(f"Comment cannot exceed {settings.MAX_COMMENT_LENGTH} characters")

        post = PostService.get_post(post_id, db)

        user = db.query(User).filter(User.id == user_id).first()
        if not user:
            raise AuthError("User not found")

        post.comments.append(Comment(user_id=user_id, username=user.username, text=text))
        try:
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            logger.error(f"Failed to add comment to post {post_id}", exc_info=True)
            raise PersistenceError("Server error while adding comment")
        db.refresh(post)
        logger.info(f"User {user_id} commented on post {post_id}")
        return post, len(post.comments)
