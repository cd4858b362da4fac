from fastapi import APIRouter, Depends

from app.schemas.auth import CurrentUserResponse, UserRole, UserStatusUpdateRequest
from app.services.auth_service import AuthService, require_roles

router = APIRouter(prefix="/users", tags=["users"])

require_admin = require_roles(UserRole.admin)


@router.put("/{user_id}/status", response_model=CurrentUserResponse)
def update_user_status(
    user_id: str,
    payload: UserStatusUpdateRequest,
    _: CurrentUserResponse = Depends(require_admin),
) -> CurrentUserResponse:
    service = AuthService()
    return service.update_user_status(user_id, payload)
