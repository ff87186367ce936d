from typing import List
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.database import get_db
from app.models.user import User
from app.schemas.user import ProfileSchema, UserCreate

router = APIRouter()


def get_user_or_404(user_id: int, db: Session) -> User:
    """Return the user or raise 404."""
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user


@router.post("", response_model=ProfileSchema, status_code=201)
def create_user(payload: UserCreate, db: Session = Depends(get_db)):
    """Register an employee profile."""
    if db.query(User).filter(User.email == payload.email).first():
        raise HTTPException(status_code=409, detail="Email already registered")
    user = User(
        email=payload.email,
        full_name=payload.full_name,
        department=payload.department,
        is_admin=payload.is_admin,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@router.get("", response_model=List[ProfileSchema])
def list_users(db: Session = Depends(get_db)):
    return db.query(User).order_by(User.id).all()


@router.get("/{user_id}", response_model=ProfileSchema)
def get_user(user_id: int, db: Session = Depends(get_db)):
    return get_user_or_404(user_id, db)
