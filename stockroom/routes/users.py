"""
Stockroom — User Route Handler
================================

What:  GET /users/{user_id} returns name and email from the external directory.
"""

from fastapi import APIRouter, Depends, Request

from stockroom.schemas.common import ErrorResponse
from stockroom.schemas.user import UserResponse
from stockroom.services.user_directory import UserDirectoryClient

router = APIRouter(tags=["Users"])


def get_user_directory(request: Request) -> UserDirectoryClient:
    return request.app.state.user_directory


@router.get(
    "/users/{user_id}",
    response_model=UserResponse,
    responses={
        404: {"description": "Unknown user", "model": ErrorResponse},
        502: {"description": "Directory unavailable", "model": ErrorResponse},
    },
    summary="Fetch a user by id",
)
async def get_user(
    user_id: int,
    directory: UserDirectoryClient = Depends(get_user_directory),
) -> UserResponse:
    return await directory.get_user(user_id)
