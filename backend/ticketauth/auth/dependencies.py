from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from typing import Optional

from ..database import User
from ..dependencies import get_auth_controller, get_session_id
from .controller import AuthFlowController

# Bearer tokens are optional; the session cookie is the primary credential
security = HTTPBearer(auto_error=False)

async def get_current_user(
    session_id: Optional[str] = Depends(get_session_id),
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    controller: AuthFlowController = Depends(get_auth_controller)
) -> User:
    """Caller of a protected operation; requires completed OTP verification"""

    token = credentials.credentials if credentials else None
    return await controller.authenticate(session_id, token)
