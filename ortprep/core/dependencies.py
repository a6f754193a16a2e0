"""Shared dependencies for the ORT Prep service."""

from typing import Optional
import httpx
import structlog
from jose import jwt, JWTError
from datetime import datetime, timedelta
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from ortprep.adaptive.sessions import SessionStore
from ortprep.ai.client import AIGatewayClient
from ortprep.core.config import settings
from ortprep.gamification.events import EventBus

logger = structlog.get_logger()

# Global instances
_http_client: Optional[httpx.AsyncClient] = None
_event_bus: Optional[EventBus] = None
_session_store: Optional[SessionStore] = None

# Security
security = HTTPBearer(auto_error=False)


async def get_http_client() -> httpx.AsyncClient:
    """Get HTTP client for outbound calls."""
    global _http_client

    if _http_client is None:
        _http_client = httpx.AsyncClient(
            timeout=httpx.Timeout(settings.AI_REQUEST_TIMEOUT),
            headers={
                "Content-Type": "application/json",
                "User-Agent": f"{settings.SERVICE_NAME}/{settings.APP_VERSION}"
            }
        )

    return _http_client


async def close_http_client():
    global _http_client

    if _http_client is not None:
        await _http_client.aclose()
        _http_client = None


async def get_ai_client(http_client: httpx.AsyncClient = Depends(get_http_client)) -> AIGatewayClient:
    return AIGatewayClient(http_client)


def get_event_bus() -> EventBus:
    global _event_bus

    if _event_bus is None:
        _event_bus = EventBus()
    return _event_bus


def get_session_store() -> SessionStore:
    global _session_store

    if _session_store is None:
        _session_store = SessionStore()
    return _session_store


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None):
    """Create JWT access token."""
    to_encode = data.copy()
    if expires_delta:
        expire = datetime.utcnow() + expires_delta
    else:
        expire = datetime.utcnow() + timedelta(minutes=settings.JWT_EXPIRATION_MINUTES)

    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def _unauthorized() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid authentication credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)):
    """Get current user from JWT token."""
    if credentials is None:
        raise _unauthorized()

    try:
        payload = jwt.decode(
            credentials.credentials,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM]
        )
    except JWTError:
        raise _unauthorized()

    user_id: str = payload.get("sub")
    if user_id is None:
        raise _unauthorized()
    return {"user_id": user_id, "role": payload.get("role", "student")}


def ensure_can_view(current_user: dict, user_id: str):
    """Only the user themselves or an admin may read private progress."""
    if current_user["user_id"] != user_id and current_user.get("role") != "admin":
        raise HTTPException(status_code=403, detail="Not authorized")
