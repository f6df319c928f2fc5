"""Auth gateway: the single dependency guarding every protected route.

    no bearer token           -> Unauthorized
    token expired / invalid   -> Unauthorized
    user behind token gone    -> Unauthorized
    otherwise                 -> CurrentUser, also stored on request.state.user
"""

import logging
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer
from pydantic import BaseModel

from backend.errors import Unauthorized
from backend.security import TokenExpired, TokenMalformed, TokenService, get_token_service
from backend.users import UserStore, get_user_store, serialize_user

logger = logging.getLogger(__name__)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)


class CurrentUser(BaseModel):
    id: str
    name: str
    email: str
    role: str = "standard"
    bio: Optional[str] = None
    avatar: Optional[str] = None
    createdAt: Optional[str] = None


def get_current_user(
    request: Request,
    token: Optional[str] = Depends(oauth2_scheme),
    tokens: TokenService = Depends(get_token_service),
    users: UserStore = Depends(get_user_store),
) -> CurrentUser:
    if not token:
        raise Unauthorized("No token provided. Authorization denied.")
    try:
        user_id = tokens.verify(token)
    except TokenExpired:
        raise Unauthorized("Token expired. Please log in again.")
    except TokenMalformed:
        raise Unauthorized("Invalid token.")

    doc = users.find_by_id(user_id)
    if doc is None:
        logger.info("Token presented for missing user %s", user_id)
        raise Unauthorized("User no longer exists.")

    current = CurrentUser(**serialize_user(doc))
    request.state.user = current
    return current
