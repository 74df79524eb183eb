# auth router — signup, login, current user, token refresh, profile

import logging
from fastapi import APIRouter, Depends, HTTPException, status
from bson import ObjectId

from calmmind.errors import AuthError
from calmmind.models.user import (
    UserCreate, UserLogin, TokenResponse, RefreshRequest, UserResponse, ProfileUpdate,
)
from calmmind.services.auth_service import (
    hash_password, verify_password, create_token_pair, user_id_from_token,
)
from calmmind.services.db import Database, get_db
from calmmind.services.dates import now_utc
from calmmind.dependencies import get_current_user

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/auth", tags=["auth"])


def _doc_to_user(doc: dict) -> UserResponse:
    return UserResponse(
        id=doc.get("id", str(doc.get("_id", ""))),
        email=doc.get("email", ""),
        name=doc.get("name", ""),
        avatarUrl=doc.get("avatar_url"),
        createdAt=doc.get("created_at", ""),
    )


@router.post("/signup", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
async def signup(body: UserCreate, db: Database = Depends(get_db)):
    """register a new user and return a token pair"""
    email = body.email.strip().lower()

    existing = await db.users.find_one({"email": email})
    if existing:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Email already registered",
        )

    doc = {
        "email": email,
        "hashed_password": hash_password(body.password),
        "name": body.name.strip(),
        "avatar_url": None,
        "created_at": now_utc().isoformat(),
    }
    result = await db.users.insert_one(doc)
    user_id = str(result.inserted_id)
    logger.info(f"New user registered: {user_id}")

    return TokenResponse(**_token_pair(user_id))


@router.post("/login", response_model=TokenResponse)
async def login(body: UserLogin, db: Database = Depends(get_db)):
    user = await db.users.find_one({"email": body.email.strip().lower()})
    if not user or not verify_password(body.password, user.get("hashed_password", "")):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
        )
    return TokenResponse(**_token_pair(str(user["_id"])))


@router.get("/me", response_model=UserResponse)
async def get_me(current_user: dict = Depends(get_current_user)):
    return _doc_to_user(current_user)


@router.post("/refresh", response_model=TokenResponse)
async def refresh(body: RefreshRequest, db: Database = Depends(get_db)):
    """exchange a refresh token for a new token pair"""
    try:
        user_id = user_id_from_token(body.refresh_token, "refresh")
    except AuthError as e:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(e))

    user = await db.users.find_one({"_id": ObjectId(user_id)}) if ObjectId.is_valid(user_id) else None
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found")

    return TokenResponse(**_token_pair(user_id))


@router.patch("/profile", response_model=UserResponse)
async def update_profile(
    body: ProfileUpdate,
    current_user: dict = Depends(get_current_user),
    db: Database = Depends(get_db),
):
    updates = body.model_dump(exclude_none=True)
    if not updates:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="No fields to update",
        )

    await db.users.update_one({"_id": ObjectId(current_user["id"])}, {"$set": updates})
    current_user.update(updates)
    return _doc_to_user(current_user)


def _token_pair(user_id: str) -> dict:
    pair = create_token_pair(user_id)
    return {"accessToken": pair["access_token"], "refreshToken": pair["refresh_token"]}
