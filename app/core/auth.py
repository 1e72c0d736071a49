"""Authentication dependencies for FastAPI routes.

Public interface:
    ``require_auth``  -- AuthContext of an approved user, or 401.
    ``require_admin`` -- as require_auth, plus 403 unless the user is an admin.

With ``settings.auth_enabled`` off every request runs as an anonymous
admin, which keeps local development and the test suite free of tokens.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from .config import settings
from .token_factory import TokenPayload, decode_token
from ..database import get_db
from ..exceptions import AuthenticationError, ForbiddenError
from ..models.user import User

logger = logging.getLogger(__name__)

_bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class AuthContext:
    """Who is calling. ``user_id`` is recorded as owner of anything they create."""

    user_id: str
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


_ANONYMOUS = AuthContext(user_id="anonymous", role="admin")


def require_auth(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer_scheme),
    db: Session = Depends(get_db),
) -> AuthContext:
    if not settings.auth_enabled:
        return _ANONYMOUS

    if credentials is None:
        raise AuthenticationError("Missing authentication token")

    payload = decode_token(credentials.credentials, settings.jwt_secret_key, settings.jwt_algorithm)
    if payload is None:
        raise AuthenticationError("Invalid or expired token")

    return _load_auth_context(payload, db)


def require_admin(auth: AuthContext = Depends(require_auth)) -> AuthContext:
    """Permanent deletion and other irreversible operations are admin-only."""
    if not auth.is_admin:
        logger.warning("Admin action refused", extra={"user_id": auth.user_id})
        raise ForbiddenError("Admin access required")
    return auth


def _load_auth_context(payload: TokenPayload, db: Session) -> AuthContext:
    """Accounts must exist and be approved; the stored role wins over the token claim."""
    user = db.query(User).filter(User.user_id == payload.sub).first()
    if user is None:
        raise AuthenticationError("User not found")
    if not user.is_active:
        raise AuthenticationError("Account is not approved")
    return AuthContext(user_id=user.user_id, role=user.role)
