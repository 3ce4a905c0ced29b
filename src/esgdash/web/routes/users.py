"""User directory routes."""

from fastapi import APIRouter, Depends, status

from ...users import UserService
from ..deps import get_user_service
from ..schemas import UserCreate, UserUpdate

router = APIRouter(prefix="/api/users", tags=["users"])


@router.get("")
async def list_users(service: UserService = Depends(get_user_service)):
    return service.list_users()


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_user(body: UserCreate, service: UserService = Depends(get_user_service)):
    return service.create_user(body.username, body.email, body.role, body.status)


@router.get("/{user_id}")
async def get_user(user_id: int, service: UserService = Depends(get_user_service)):
    return service.get_user(user_id)


@router.patch("/{user_id}")
async def update_user(
    user_id: int,
    body: UserUpdate,
    service: UserService = Depends(get_user_service),
):
    user = service.get_user(user_id)
    if body.role is not None:
        user = service.update_role(user_id, body.role)
    if body.status is not None:
        user = service.update_status(user_id, body.status)
    return user


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user(user_id: int, service: UserService = Depends(get_user_service)):
    service.delete_user(user_id)
