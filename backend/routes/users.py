from fastapi import APIRouter, Depends

from backend.auth import CurrentUser, get_current_user
from backend.payloads import PasswordChange, ProfileUpdate
from backend.users import UserStore, get_user_store

router = APIRouter()


@router.get("/profile")
def get_profile(
    current: CurrentUser = Depends(get_current_user),
    users: UserStore = Depends(get_user_store),
):
    return {"success": True, "user": users.get(current.id)}


@router.put("/profile")
def update_profile(
    data: ProfileUpdate,
    current: CurrentUser = Depends(get_current_user),
    users: UserStore = Depends(get_user_store),
):
    return {"success": True, "user": users.update_profile(current.id, data)}


@router.put("/password")
def change_password(
    data: PasswordChange,
    current: CurrentUser = Depends(get_current_user),
    users: UserStore = Depends(get_user_store),
):
    users.change_password(current.id, data.current_password, data.new_password)
    return {"success": True, "message": "Password updated successfully."}
