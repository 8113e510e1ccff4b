#!/usr/bin/env python3
"""
Emite um token de acesso para desenvolvimento local, assinado com o
SUPABASE_JWT_SECRET configurado (mesmo formato de claims do Supabase Auth).

Uso: python issue_dev_token.py <user_id> [email]
"""
import sys

from grafica_crm.core.config import Settings
from grafica_crm.core.security import create_access_token


def issue_dev_token(user_id: str, email: str = None) -> str:
    settings = Settings()
    if settings.env not in {"dev", "test"}:
        raise SystemExit("Tokens de desenvolvimento só podem ser emitidos com ENV=dev")
    return create_access_token(settings, subject=user_id, email=email, expires_minutes=60 * 24)


if __name__ == "__main__":
    if len(sys.argv) < 2:
        raise SystemExit(__doc__)
    print(issue_dev_token(sys.argv[1], sys.argv[2] if len(sys.argv) > 2 else None))
