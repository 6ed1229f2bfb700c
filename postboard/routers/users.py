from uuid import UUID

from fastapi import APIRouter, Depends

from postboard.dependencies.auth import AuthenticatedUser, get_current_user, require_admin
from postboard.dependencies.services import get_user_service
from postboard.schemas.auth import MessageResponse
from postboard.schemas.user import AssignRoleRequest, UserOut
from postboard.services.user_service import UserService

user_router = APIRouter(prefix="/users", tags=["users"])


@user_router.get("/me", response_model=UserOut)
def get_me(
    user: AuthenticatedUser = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
):
    return UserOut.model_validate(service.get_user(user.user_id))


@user_router.post("/{user_id}/roles", response_model=MessageResponse)
def assign_role(
    user_id: UUID,
    body: AssignRoleRequest,
    _admin: AuthenticatedUser = Depends(require_admin),
    service: UserService = Depends(get_user_service),
):
    service.assign_role(user_id, body.role)
    return MessageResponse(message="Role assigned successfully")


@user_router.delete("/{user_id}/roles/{role}", response_model=MessageResponse)
def remove_role(
    user_id: UUID,
    role: str,
    _admin: AuthenticatedUser = Depends(require_admin),
    service: UserService = Depends(get_user_service),
):
    service.remove_role(user_id, role)
    return MessageResponse(message="Role removed successfully")
