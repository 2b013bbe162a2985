from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from typing import Optional

from ..core.database import get_db, get_redis
from ..core.permissions import Capability, has_capability, roles_with
from ..core.security import (
    security, verify_token, AuthenticationError,
    AuthorizationError, UserRole, TokenPayload, Principal
)
from ..models.user import User
from ..services.appointment_cache import AppointmentViewCache
from ..services.appointment_service import AppointmentService

async def get_current_user_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> TokenPayload:
    """Extract and verify JWT token from Authorization header."""
    if credentials is None:
        raise AuthenticationError("Unauthorized: Please sign in")

    # Verify token
    token_payload = verify_token(credentials.credentials)
    if not token_payload:
        raise AuthenticationError("Invalid or expired token")

    # Check if token is access token
    if token_payload.token_type != "access":
        raise AuthenticationError("Invalid token type")

    return token_payload

async def get_current_user(
    token_payload: TokenPayload = Depends(get_current_user_token),
    db: Session = Depends(get_db)
) -> User:
    """Get current authenticated user from database."""
    if not token_payload.sub:
        raise AuthenticationError("Invalid token payload")

    user = db.query(User).filter(User.id == token_payload.sub).first()
    if not user:
        raise AuthenticationError("User not found")

    if not user.is_active:
        raise AuthenticationError("User account is deactivated")

    return user

async def get_principal(
    current_user: User = Depends(get_current_user)
) -> Principal:
    """The (user id, role) pair of the caller."""
    return Principal(user_id=current_user.id, role=UserRole(current_user.role))

# Capability-based access control
def require_capability(capability: Capability):
    """Create a dependency that requires the caller's role to grant a capability."""
    async def capability_checker(
        principal: Principal = Depends(get_principal)
    ) -> Principal:
        if not has_capability(principal.role, capability):
            raise AuthorizationError(
                f"Access denied. Required roles: {roles_with(capability)}"
            )
        return principal

    return capability_checker

def get_appointment_service(
    db: Session = Depends(get_db),
    redis_client = Depends(get_redis)
) -> AppointmentService:
    """Appointment service bound to the request's session."""
    return AppointmentService(db, AppointmentViewCache(redis_client))
