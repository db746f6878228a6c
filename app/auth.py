"""
Bearer token -> Principal. Tokens are issued by the external identity provider
(HS256, shared secret) and carry the identity id in `sub` and the email.
Services receive the Principal explicitly; nothing reads ambient session state.
"""
from dataclasses import dataclass
from datetime import timedelta
from jose import JWTError, jwt
from fastapi import Depends, Header, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from app.config import get_settings
from app.schemas.profile import TokenPayload
from app.utils.clock import utcnow

security = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class Principal:
    user_id: str
    email: str | None = None


def create_access_token(user_id: str, email: str) -> str:
    """Mint a token the way the identity provider does (dev tooling and tests)."""
    settings = get_settings()
    expire = utcnow() + timedelta(minutes=settings.access_token_expire_minutes)
    payload = {
        "sub": user_id,
        "email": email,
        "exp": expire,
        "type": "access",
    }
    return jwt.encode(payload, settings.secret_key, algorithm=settings.algorithm)


def decode_token(token: str) -> TokenPayload | None:
    settings = get_settings()
    try:
        payload = jwt.decode(
            token,
            settings.secret_key,
            algorithms=[settings.algorithm],
        )
        return TokenPayload(
            sub=payload["sub"],
            email=payload.get("email"),
            exp=payload["exp"],
        )
    except (JWTError, KeyError):
        return None


def get_current_principal(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> Principal:
    if not credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    payload = decode_token(credentials.credentials)

    if not payload:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return Principal(user_id=payload.sub, email=payload.email)


def require_identity_webhook(
    x_webhook_secret: str | None = Header(default=None),
) -> None:
    """Identity provider events must carry the shared webhook secret."""
    expected = get_settings().identity_webhook_secret
    if not expected or x_webhook_secret != expected:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid webhook secret",
        )
