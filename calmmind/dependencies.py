# fastapi dependency injection
# resolves the current user and builds the per-user gateways

import logging
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from bson import ObjectId
from bson.errors import InvalidId

from calmmind.errors import AuthError
from calmmind.services.auth_service import user_id_from_token
from calmmind.services.db import Database, get_db
from calmmind.services.gemini import GeminiGateway, get_gateway
from calmmind.services.mood_orchestrator import MoodOrchestrator
from calmmind.services.persistence import Persistence

logger = logging.getLogger(__name__)

security = HTTPBearer()


async def resolve_user(token: str, db: Database) -> dict:
    """user document for an access token; raises AuthError when invalid"""
    user_id = user_id_from_token(token, "access")

    try:
        user = await db.users.find_one({"_id": ObjectId(user_id)})
    except InvalidId:
        user = None

    if not user:
        raise AuthError("User not found")

    user["id"] = str(user["_id"])
    del user["_id"]
    return user


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Database = Depends(get_db),
) -> dict:
    """extract and validate the current user from the jwt bearer token"""
    try:
        return await resolve_user(credentials.credentials, db)
    except AuthError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
        )


async def get_persistence(
    current_user: dict = Depends(get_current_user),
    db: Database = Depends(get_db),
) -> Persistence:
    return Persistence(db, current_user.get("id"))


async def get_orchestrator(
    store: Persistence = Depends(get_persistence),
    gateway: GeminiGateway = Depends(get_gateway),
) -> MoodOrchestrator:
    return MoodOrchestrator(gateway, store)
