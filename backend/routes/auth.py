from fastapi import APIRouter, Depends

from backend.auth import CurrentUser, get_current_user
from backend.payloads import LoginPayload, RegisterPayload
from backend.security import TokenService, get_token_service
from backend.users import UserStore, get_user_store

router = APIRouter()


def _token_response(user: dict, tokens: TokenService) -> dict:
    return {"success": True, "token": tokens.issue(user["id"]), "user": user}


@router.post("/register", status_code=201)
def register(
    payload: RegisterPayload,
    users: UserStore = Depends(get_user_store),
    tokens: TokenService = Depends(get_token_service),
):
    user = users.create(payload.name, payload.email, payload.password)
    return _token_response(user, tokens)


@router.post("/login")
def login(
    payload: LoginPayload,
    users: UserStore = Depends(get_user_store),
    tokens: TokenService = Depends(get_token_service),
):
    user = users.authenticate(payload.email, payload.password)
    return _token_response(user, tokens)


@router.get("/me")
def me(current: CurrentUser = Depends(get_current_user)):
    return {"success": True, "user": current.model_dump()}
