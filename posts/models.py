# src/posts/models.py
from sqlalchemy import Column, Integer, String, ForeignKey, Text, DateTime, UniqueConstraint
from sqlalchemy.orm import relationship
from database import Base
from datetime import datetime
from typing import Optional

class Post(Base):
    """A feed post with text and/or a media reference."""
    __tablename__ = "posts"

    id: int = Column(Integer, primary_key=True, index=True)
    user_id: int = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    content: Optional[str] = Column(Text, nullable=True)
    image: Optional[str] = Column(String, nullable=True)  # URL or /uploads/<file>
    like_count: int = Column(Integer, nullable=False, default=0)
    created_at: datetime = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
    version_id: int = Column(Integer, nullable=False)

    user = relationship("User", back_populates="posts")
    likes_rel = relationship("PostLike", back_populates="post", cascade="all, delete-orphan",
                             order_by="PostLike.id")
    comments = relationship("Comment", back_populates="post", cascade="all, delete-orphan",
                            order_by="Comment.id")

    # UPDATE ... WHERE version_id = <read value>; a concurrent writer makes it match no rows
    __mapper_args__ = {"version_id_col": version_id}

    @property
    def likes(self) -> list:
        return [like.user_id for like in self.likes_rel]


class PostLike(Base):
    __tablename__ = "post_likes"

    id: int = Column(Integer, primary_key=True, index=True)
    post_id: int = Column(Integer, ForeignKey("posts.id"), nullable=False)
    user_id: int = Column(Integer, ForeignKey("users.id"), nullable=False)
    created_at: datetime = Column(DateTime, default=datetime.utcnow)

    post = relationship("Post", back_populates="likes_rel")

    __table_args__ = (UniqueConstraint('post_id', 'user_id', name='unique_post_user_like'),)


class Comment(Base):
    """A comment owned by its post. The username is copied at write time."""
    __tablename__ = "comments"

    id: int = Column(Integer, primary_key=True, index=True)
    post_id: int = Column(Integer, ForeignKey("posts.id"), nullable=False, index=True)
    user_id: int = Column(Integer, ForeignKey("users.id"), nullable=False)
    username: str = Column(String(50), nullable=False)
    text: str = Column(String(500), nullable=False)
    created_at: datetime = Column(DateTime, default=datetime.utcnow, nullable=False)

    post = relationship("Post", back_populates="comments")
