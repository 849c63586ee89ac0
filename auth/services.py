# src/auth/services.py
import logging

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
from jose import jwt
from passlib.context import CryptContext
from datetime import datetime, timedelta, timezone
from typing import Optional
from auth.models import User
from auth.schemas import UserCreate
from config import settings
from exceptions import ValidationError, PersistenceError

logger = logging.getLogger(__name__)

class AuthService:
    pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

    @staticmethod
    def hash_password(password: str) -> str:
        """Hash a password using bcrypt."""
        return AuthService.pwd_context.hash(password)

    @staticmethod
    def verify_password(plain_password: str, hashed_password: str) -> bool:
        """Verify a password against its hash."""
        return AuthService.pwd_context.verify(plain_password, hashed_password)

    @staticmethod
    def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
        """Create a JWT access token."""
        to_encode = data.copy()
        if expires_delta is None:
            expires_delta = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
        to_encode.update({"exp": datetime.now(timezone.utc) + expires_delta})
        return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)

    @staticmethod
    def decode_access_token(token: str) -> dict:
        """Decode a token, raising jose.JWTError when it is invalid or expired."""
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM], options={"verify_exp": True})

    @staticmethod
    def get_user_by_email(email: str, db: Session) -> Optional[User]:
        """Retrieve a user by email."""
        return db.query(User).filter(User.email == email).first()

    @staticmethod
    def get_user_by_id(user_id: int, db: Session) -> Optional[User]:
        return db.query(User).filter(User.id == user_id).first()

    @staticmethod
    def authenticate_user(email: str, password: str, db: Session) -> Optional[User]:
        user = AuthService.get_user_by_email(email, db)
        if not user or not AuthService.verify_password(password, user.password_hash):
            logger.warning(f"Failed login attempt for {email}")
            return None
        return user

    @staticmethod
    def create_user(user_data: UserCreate, db: Session) -> User:
        username = user_data.username.strip()
        if not username:
            raise ValidationError("Username is required")
        if len(username) > settings.MAX_USERNAME_LENGTH:
            raise ValidationError(f"Username cannot exceed {settings.MAX_USERNAME_LENGTH} characters")
        if len(user_data.password) < settings.MIN_PASSWORD_LENGTH:
            raise ValidationError(f"Password must be at least {settings.MIN_PASSWORD_LENGTH} characters")
        if db.query(User).filter(User.email == user_data.email).first():
            raise ValidationError("Email already registered")
        if db.query(User).filter(User.username == username).first():
            raise ValidationError("Username already taken")

        new_user = User(
            username=username,
            email=user_data.email,
            password_hash=AuthService.hash_password(user_data.password),
        )
        db.add(new_user)
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            raise ValidationError("Email or username already registered")
        except SQLAlchemyError:
            db.rollback()
            logger.error(f"Failed to register user {username}", exc_info=True)
            raise PersistenceError("Server error while registering user")
        db.refresh(new_user)
        logger.info(f"Registered user {new_user.id} ({new_user.username})")
        return new_user
