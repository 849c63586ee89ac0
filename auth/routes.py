# src/auth/routes.py
from fastapi import APIRouter, Depends, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from jose import JWTError
from auth.services import AuthService
from auth.schemas import UserCreate, UserResponse, UserLogin, Token
from auth.models import User
from database import get_db
from exceptions import AuthError

router = APIRouter(prefix="/auth", tags=["auth"])
bearer_scheme = HTTPBearer(auto_error=False)

def get_current_user(credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme), db: Session = Depends(get_db)) -> User:
    """Retrieve the current authenticated user."""
    if credentials is None:
        raise AuthError("Not authenticated")
    try:
        payload = AuthService.decode_access_token(credentials.credentials)
    except JWTError:
        raise AuthError()
    email = payload.get("sub")
    if email is None:
        raise AuthError()
    user = AuthService.get_user_by_email(email, db)
    if user is None:
        raise AuthError("User not found")
    return user

@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def register(user: UserCreate, db: Session = Depends(get_db)):
    """Register a new user."""
    return AuthService.create_user(user, db)

@router.post("/login", response_model=Token)
def login(user: UserLogin, db: Session = Depends(get_db)):
    """Login and return a JWT token."""
    authenticated_user = AuthService.authenticate_user(user.email, user.password, db)
    if not authenticated_user:
        raise AuthError("Incorrect email or password")
    access_token = AuthService.create_access_token(data={"sub": authenticated_user.email})
    return Token(access_token=access_token, token_type="bearer", user=UserResponse.model_validate(authenticated_user))


@router.get("/me", response_model=UserResponse)
def read_users_me(current_user: User = Depends(get_current_user)):
    """Get current user details."""
    return current_user
