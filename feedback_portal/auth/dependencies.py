from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from feedback_portal.auth import jwt_handler
from feedback_portal.auth.sessions import ROLE_ADMIN, ROLE_STUDENT, STAFF_ROLES, SessionContext, load_session
from feedback_portal.core.errors import Forbidden
from feedback_portal.database import get_db

security = HTTPBearer()


def get_current_session(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db),
) -> SessionContext:
    token = credentials.credentials
    try:
        payload = jwt_handler.decode_access_token(token)
    except Exception as exc:
        raise HTTPException(status_code=401, detail="Invalid token") from exc

    session_id = payload.get("sid")
    if not session_id:
        raise HTTPException(status_code=401, detail="Invalid token subject")

    context = load_session(db, session_id)
    if context is None:
        raise HTTPException(status_code=401, detail="Session has ended")
    return context


def require_roles(*roles: str):
    allowed = set(roles)

    def dependency(context: SessionContext = Depends(get_current_session)) -> SessionContext:
        if context.role not in allowed:
            raise Forbidden("You do not have access to this resource.")
        return context

    return dependency


require_student = require_roles(ROLE_STUDENT)
require_admin = require_roles(ROLE_ADMIN)
require_staff = require_roles(*STAFF_ROLES)
