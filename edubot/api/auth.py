"""
API key authentication for client applications

The student app and the chatbot backend call this API on behalf of students
they have already signed in. A key identifies the calling application only;
user ids in request paths are taken as given.
"""
import hmac
import os
import logging
from fastapi import HTTPException, Security, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

logger = logging.getLogger(__name__)

security = HTTPBearer(description="Client application API key")


def load_client_keys() -> frozenset[str]:
    """Comma-separated keys from API_KEYS, read on every request so rotation needs no restart"""
    raw = os.getenv("API_KEYS", "")
    return frozenset(key.strip() for key in raw.split(",") if key.strip())


def mask_key(api_key: str) -> str:
    return f"{api_key[:4]}..." if len(api_key) > 8 else "****"


def is_known_key(api_key: str, valid_keys: frozenset[str]) -> bool:
    candidate = api_key.encode()
    return any(hmac.compare_digest(candidate, key.encode()) for key in valid_keys)


async def verify_api_key(
    credentials: HTTPAuthorizationCredentials = Security(security)
) -> str:
    """
    FastAPI dependency guarding every /api/v1 route

    Raises:
        HTTPException: 503 when no keys are configured, 401 for an unknown key
    """
    valid_keys = load_client_keys()
    if not valid_keys:
        logger.error("API_KEYS is empty - refusing client requests")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="API authentication not configured"
        )

    api_key = credentials.credentials
    if not is_known_key(api_key, valid_keys):
        logger.warning(f"Rejected unknown client key {mask_key(api_key)}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid API key"
        )

    return api_key
