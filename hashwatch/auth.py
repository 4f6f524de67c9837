from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import jwt

ALGORITHM = "HS256"


def issue_token(secret: str, ttl_hours: float = 24 * 7, now: datetime | None = None) -> str:
    issued = now or datetime.now(timezone.utc)
    claims = {"sub": "dashboard", "iat": issued, "exp": issued + timedelta(hours=ttl_hours)}
    return jwt.encode(claims, secret, algorithm=ALGORITHM)


def verify_token(token: str | None, secret: str | None) -> bool:
    if not token or not secret:
        return False
    try:
        jwt.decode(token, secret, algorithms=[ALGORITHM])
    except jwt.PyJWTError:
        return False
    return True


@dataclass(frozen=True)
class GateDecision:
    allow: bool
    redirect_to: str | None = None


ALLOW = GateDecision(allow=True)


@dataclass
class AuthGate:
    """Per-request routing decision based only on token validity and path."""

    secret: str
    login_path: str = "/login"
    home_path: str = "/"
    api_prefix: str = "/api/"

    def decide(self, path: str, token: str | None) -> GateDecision:
        verified = verify_token(token, self.secret)
        is_login = path == self.login_path

        if is_login and verified:
            return GateDecision(allow=False, redirect_to=self.home_path)

        if not is_login and not verified:
            if "." in path:
                return ALLOW
            if path.startswith(self.api_prefix):
                return ALLOW
            return GateDecision(allow=False, redirect_to=self.login_path)

        return ALLOW
