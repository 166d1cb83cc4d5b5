from __future__ import annotations

from datetime import datetime, timedelta, timezone
from jose import ExpiredSignatureError, JWTError, jwt

from app.core.config import settings


def create_access_token(stu_id: str, expires_minutes: int = 60) -> str:
    # Mirrors the login service's tokens; used by local tooling and tests.
    now = datetime.now(timezone.utc)
    expire = now + timedelta(minutes=expires_minutes)

    payload = {
        "sub": stu_id,                   # student id
        "iat": int(now.timestamp()),
        "exp": int(expire.timestamp()),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> tuple[str | None, str | None]:
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except ExpiredSignatureError:
        return None, "expired"
    except JWTError:
        return None, "invalid"

    subject = payload.get("sub")
    if not isinstance(subject, str):
        return None, "invalid"

    stu_id = subject.strip()
    if not stu_id:
        return None, "invalid"
    return stu_id, None
