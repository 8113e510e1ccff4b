from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import jwt

from grafica_crm.core.config import Settings


def create_access_token(
    settings: Settings,
    subject: str,
    email: Optional[str] = None,
    expires_minutes: int = 60,
) -> str:
    """
    Emite um token com o mesmo formato de claims do Supabase Auth.
    Usado em testes e no script de desenvolvimento; em produção quem emite é o provedor.
    """
    now = datetime.now(timezone.utc)
    payload: dict[str, Any] = {
        "sub": subject,
        "aud": settings.jwt_audience,
        "role": "authenticated",
        "exp": now + timedelta(minutes=expires_minutes),
        "iat": now,
    }
    if email:
        payload["email"] = email
    return jwt.encode(payload, settings.supabase_jwt_secret, algorithm=settings.jwt_algorithm)


def decode_token(token: str, settings: Settings) -> Optional[dict[str, Any]]:
    try:
        return jwt.decode(
            token,
            settings.supabase_jwt_secret,
            algorithms=[settings.jwt_algorithm],
            audience=settings.jwt_audience,
        )
    except jwt.PyJWTError:
        return None
