from typing import Optional

from pydantic import BaseModel

from ..core.security import UserRole

class PrincipalResponse(BaseModel):
    user_id: str
    role: UserRole
    name: Optional[str] = None
    email: Optional[str] = None

class TokenVerification(BaseModel):
    valid: bool
    user_id: Optional[str] = None
    email: Optional[str] = None
    role: Optional[str] = None
    expires: Optional[int] = None
