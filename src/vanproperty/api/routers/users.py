"""
Users Router

Profiles, login bookkeeping and activity summaries.
"""
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from config.settings import settings
from src.vanproperty.api.dependencies import get_db
from src.vanproperty.api.errors import ConflictError, NotFoundError, require_fields
from src.vanproperty.api.responses import changed, created, message, ok
from src.vanproperty.api.schemas import ChangesResponse, CreatedResponse, MessageResponse, UserCreate, UserUpdate
from src.vanproperty.db.exceptions import DuplicateEntryError
from src.vanproperty.db.repository import UserRepository
from src.vanproperty.db.session import transactional

router = APIRouter(prefix="/users", tags=["users"])

users = UserRepository()

CONFLICT_MESSAGES = {
    "username": "Username already exists",
    "email": "Email already exists",
}


@router.get("")
def list_users(db: Session = Depends(get_db)):
    return ok(users.get_all(db))


@router.get("/inactive")
@router.get("/inactive/{days}")
def list_inactive_users(days: Optional[int] = None, db: Session = Depends(get_db)):
    """Users not seen for ``days`` days (default 90), never-logged-in first."""
    days = days or settings.inactive_days_default
    return ok(users.get_inactive(db, days), criteria=f"Not logged in for {days} days")


@router.get("/username/{username}")
def get_user_by_username(username: str, db: Session = Depends(get_db)):
    user = users.get_by_username(db, username)
    if user is None:
        raise NotFoundError("User not found")
    return ok(user)


@router.get("/{user_id}")
def get_user(user_id: int, db: Session = Depends(get_db)):
    user = users.get_user(db, user_id)
    if user is None:
        raise NotFoundError("User not found")
    return ok(user)


@router.get("/{user_id}/activity")
def get_user_activity(user_id: int, db: Session = Depends(get_db)):
    summary = users.activity_summary(db, user_id)
    if summary is None:
        raise NotFoundError("User not found")
    return ok(summary)


@router.post("", response_model=CreatedResponse, status_code=201)
def create_user(payload: UserCreate, db: Session = Depends(get_db)):
    require_fields(payload, "username", "email", "full_name")
    try:
        with transactional(db):
            user_id = users.create_user(
                db,
                username=payload.username,
                email=payload.email,
                full_name=payload.full_name,
                account_status=payload.account_status,
            )
    except DuplicateEntryError as e:
        raise ConflictError(CONFLICT_MESSAGES[e.field])
    return created("User created successfully", user_id=user_id)


@router.put("/{user_id}/login", response_model=MessageResponse)
def record_login(user_id: int, db: Session = Depends(get_db)):
    with transactional(db):
        changes = users.touch_last_login(db, user_id)
    if changes == 0:
        raise NotFoundError("User not found")
    return message("Last login updated successfully")


@router.put("/{user_id}", response_model=ChangesResponse)
def update_user(user_id: int, payload: UserUpdate, db: Session = Depends(get_db)):
    try:
        with transactional(db):
            changes = users.update_user(db, user_id, payload.model_dump(exclude_unset=True))
    except DuplicateEntryError as e:
        raise ConflictError(CONFLICT_MESSAGES[e.field])
    if changes == 0:
        raise NotFoundError("User not found or no changes made")
    return changed("User updated successfully", changes)


@router.delete("/{user_id}", response_model=MessageResponse)
def delete_user(user_id: int, db: Session = Depends(get_db)):
    """Delete a user; their watchlist items and saved searches go with them."""
    with transactional(db):
        deleted = users.delete(db, user_id)
    if deleted == 0:
        raise NotFoundError("User not found")
    return message("User deleted successfully")
