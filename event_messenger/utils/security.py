"""
Admin authentication and contributor rate limiting
"""

import secrets
import time
from collections import defaultdict, deque
from typing import Deque, Dict, Tuple

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from event_messenger.core.config import settings

# Request timestamps per (bucket, client ip), last minute only
rate_limiter: Dict[Tuple[str, str], Deque[float]] = defaultdict(deque)

security = HTTPBearer()

def verify_admin_token(credentials: HTTPAuthorizationCredentials = Depends(security)):
    """Verify admin authentication token"""
    if not secrets.compare_digest(credentials.credentials, settings.ADMIN_TOKEN):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid admin token"
        )
    return credentials.credentials

def rate_limit_check(client_ip: str, bucket: str = "default", limit: int = None) -> bool:
    """Sliding one-minute window per client and bucket"""
    if limit is None:
        limit = settings.RATE_LIMIT_PER_MINUTE

    now = time.time()
    window = rate_limiter[(bucket, client_ip)]
    while window and window[0] <= now - 60:
        window.popleft()

    if len(window) >= limit:
        return False

    window.append(now)
    return True

def get_client_ip(request: Request) -> str:
    """Extract client IP, honouring reverse proxy headers"""
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()

    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip

    return request.client.host if request.client else "unknown"
