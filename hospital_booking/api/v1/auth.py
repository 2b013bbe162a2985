from fastapi import APIRouter, Depends

from ...api.deps import get_current_user, get_current_user_token
from ...core.security import TokenPayload, UserRole
from ...schemas.auth import PrincipalResponse, TokenVerification
from ...models.user import User

router = APIRouter(prefix="/auth", tags=["Authentication"])

@router.get("/me", response_model=PrincipalResponse)
async def get_current_user_info(
    current_user: User = Depends(get_current_user)
):
    """Get current user information."""
    return PrincipalResponse(
        user_id=current_user.id,
        role=UserRole(current_user.role),
        name=current_user.name,
        email=current_user.email,
    )

@router.post("/verify-token", response_model=TokenVerification)
async def verify_token_endpoint(
    token_payload: TokenPayload = Depends(get_current_user_token)
):
    """Verify if token is valid."""
    return TokenVerification(
        valid=True,
        user_id=token_payload.sub,
        email=token_payload.email,
        role=token_payload.role,
        expires=token_payload.exp,
    )
