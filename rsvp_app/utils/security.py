"""
Security utilities and authentication
"""

from fastapi import HTTPException, Depends, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from typing import Dict, Optional
import secrets
import time
from collections import defaultdict

from rsvp_app.core.config import settings

# Simple in-memory rate limiter
rate_limiter = defaultdict(list)

# Client dashboard sessions: token -> {event_id, username, expires}
client_sessions: Dict[str, Dict] = {}

security = HTTPBearer()

def verify_admin_token(credentials: HTTPAuthorizationCredentials = Depends(security)):
    """Verify admin authentication token"""
    if credentials.credentials != settings.ADMIN_TOKEN:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid admin token"
        )
    return credentials.credentials

def prune_client_sessions() -> None:
    now = time.time()
    for token in [t for t, s in client_sessions.items() if s["expires"] <= now]:
        client_sessions.pop(token, None)

def create_client_session(event_id: str, username: str) -> Dict:
    """Issue a client dashboard session that expires after CLIENT_SESSION_HOURS"""
    prune_client_sessions()
    token = secrets.token_urlsafe(32)
    session = {
        "event_id": event_id,
        "username": username,
        "expires": time.time() + settings.CLIENT_SESSION_HOURS * 3600,
    }
    client_sessions[token] = session
    return {"token": token, **session}

def get_client_session(token: str) -> Optional[Dict]:
    session = client_sessions.get(token)
    if not session:
        return None
    if session["expires"] <= time.time():
        client_sessions.pop(token, None)
        return None
    return session

def revoke_client_session(token: str) -> None:
    client_sessions.pop(token, None)

def verify_client_session(credentials: HTTPAuthorizationCredentials = Depends(security)) -> Dict:
    """Resolve the bearer token to a live client session"""
    session = get_client_session(credentials.credentials)
    if not session:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Session expired or invalid"
        )
    return {"token": credentials.credentials, **session}

def rate_limit_check(client_ip: str, limit: int = None) -> bool:
    """Simple rate limiting by IP address"""
    if limit is None:
        limit = settings.RATE_LIMIT_PER_MINUTE

    current_time = time.time()
    minute_ago = current_time - 60

    # Clean old requests
    rate_limiter[client_ip] = [
        req_time for req_time in rate_limiter[client_ip]
        if req_time > minute_ago
    ]

    # Check limit
    if len(rate_limiter[client_ip]) >= limit:
        return False

    # Add current request
    rate_limiter[client_ip].append(current_time)
    return True

def get_client_ip(request) -> str:
    """Extract client IP from request"""
    # Check for forwarded IP first (for reverse proxy setups)
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()

    # Check for real IP header
    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip

    # Fall back to direct client IP
    return request.client.host if request.client else "unknown"
