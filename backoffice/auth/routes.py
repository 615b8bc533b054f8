from fastapi import APIRouter, HTTPException, Depends
from sqlalchemy.orm import Session
from ..models.auth import UserCreate, UserLogin, Token, User
from ..database.models import User as DBUser, Organization
from ..database.connection import get_db
from .utils import (
    verify_password, get_password_hash, create_access_token, get_current_user,
    ACCESS_TOKEN_EXPIRE_MINUTES
)
import logging

router = APIRouter(prefix="/auth", tags=["auth"])

@router.post("/register", response_model=Token)
def register(user: UserCreate, db: Session = Depends(get_db)):
    """Register an organization together with its first user"""
    try:
        existing_user = db.query(DBUser).filter(DBUser.email == user.email).first()
        if existing_user:
            raise HTTPException(
                status_code=400,
                detail="Email is already registered"
            )

        organization = Organization(name=user.organization_name)
        db.add(organization)
        db.flush()

        db_user = DBUser(
            email=user.email,
            name=user.name,
            organization_id=organization.id,
            password_hash=get_password_hash(user.password)
        )
        db.add(db_user)
        db.commit()

        access_token = create_access_token(data={"sub": user.email})

        logging.info(f"New user registered: {user.email} (organization {organization.id})")
        return {
            "access_token": access_token,
            "token_type": "bearer",
            "expires_in": ACCESS_TOKEN_EXPIRE_MINUTES * 60
        }

    except HTTPException:
        raise
    except Exception as e:
        logging.error(f"Registration error: {e}")
        db.rollback()
        raise HTTPException(status_code=500, detail="Internal server error")

@router.post("/login", response_model=Token)
def login(user: UserLogin, db: Session = Depends(get_db)):
    """Authenticate user and return access token"""
    try:
        db_user = db.query(DBUser).filter(DBUser.email == user.email).first()

        if not db_user or not verify_password(user.password, db_user.password_hash):
            logging.warning(f"Failed login attempt for email: {user.email}")
            raise HTTPException(
                status_code=401,
                detail="Invalid email or password"
            )

        access_token = create_access_token(data={"sub": user.email})

        logging.info(f"User logged in: {user.email}")
        return {
            "access_token": access_token,
            "token_type": "bearer",
            "expires_in": ACCESS_TOKEN_EXPIRE_MINUTES * 60
        }

    except HTTPException:
        raise
    except Exception as e:
        logging.error(f"Login error: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")

@router.get("/me", response_model=User)
def get_me(current_user: DBUser = Depends(get_current_user)):
    """Get current user information"""
    return current_user
