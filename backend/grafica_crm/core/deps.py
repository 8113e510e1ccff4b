import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Header

from grafica_crm.core.config import Settings, get_settings
from grafica_crm.core.errors import AuthenticationMissing
from grafica_crm.core.security import decode_token


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CurrentUser:
    id: str
    email: Optional[str] = None


def get_current_user(
    authorization: Optional[str] = Header(None),
    settings: Settings = Depends(get_settings),
) -> CurrentUser:
    if not authorization or not authorization.startswith("Bearer "):
        raise AuthenticationMissing()
    token = authorization.split(" ", 1)[1].strip()
    payload = decode_token(token, settings)
    if not payload or not payload.get("sub"):
        logger.warning("Rejected bearer token")
        raise AuthenticationMissing()
    return CurrentUser(id=str(payload["sub"]), email=payload.get("email"))
