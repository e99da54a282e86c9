from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jwt import PyJWTError
from sqlalchemy.orm import Session

from telecare.auth import jwt_handler
from telecare.auth.identity import CallerIdentity
from telecare.core.errors import Unauthenticated
from telecare.database import get_db
from telecare.models.user import User

security = HTTPBearer(auto_error=False)


def resolve_caller(token: str | None, db: Session) -> CallerIdentity:
    if not token:
        raise Unauthenticated("Not authenticated")
    try:
        payload = jwt_handler.decode_access_token(token)
    except PyJWTError as exc:
        raise Unauthenticated("Invalid token") from exc

    subject = payload.get("sub")
    if not subject or not str(subject).isdigit():
        raise Unauthenticated("Invalid token subject")

    user = db.get(User, int(subject))
    if user is None:
        raise Unauthenticated("User not found")
    return CallerIdentity(user_id=user.id, roles=user.roles)


def get_current_caller(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    db: Session = Depends(get_db),
) -> CallerIdentity:
    try:
        return resolve_caller(credentials.credentials if credentials else None, db)
    except Unauthenticated as exc:
        raise HTTPException(
            status_code=exc.status_code,
            detail=exc.detail,
            headers={"WWW-Authenticate": "Bearer"},
        ) from exc
