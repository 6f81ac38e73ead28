# Visitor identity endpoints: registration and token balance lookup.
# There is no login; the frontend caches the returned id and reuses it on later visits.
import logging

from fastapi import APIRouter, Depends, HTTPException, Path, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..db import get_db
from .. import models, schemas
from ..rate_limit import limit_signups

router = APIRouter()
logger = logging.getLogger("propfinder.users")

# Largest id a BIGINT / SQLite INTEGER column can hold
MAX_ID = 2**63 - 1


@router.post(
    "/users",
    response_model=schemas.UserRead,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(limit_signups)],
)
def create_user(payload: schemas.UserCreate, db: Session = Depends(get_db)) -> models.User:
    """
    Register a new user with a zero token balance.

    Usernames are unique; reusing one returns 409.
    """
    existing = db.query(models.User).filter(models.User.username == payload.username).first()
    if existing:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Username already taken")

    user = models.User(
        username=payload.username,
        wallet_address=payload.wallet_address,
        token_balance=0,
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError as exc:
        # Lost a race with a concurrent signup for the same username
        db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Username already taken") from exc
    db.refresh(user)

    logger.info("User created: %s (%s)", user.username, user.id)
    return user


@router.get("/users/{user_id}/balance", response_model=schemas.UserRead)
def get_user_balance(user_id: int = Path(..., ge=1, le=MAX_ID), db: Session = Depends(get_db)) -> models.User:
    user = db.get(models.User, user_id)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user
