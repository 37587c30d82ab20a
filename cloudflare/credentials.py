"""
cloudflare/credentials.py

Responsibility: The two Cloudflare authentication schemes and the request
headers each one produces.
Does NOT: read environment variables or config files; see config.py.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class ApiToken:
    """Scoped API token sent as a bearer credential."""

    token: str

    def headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.token}"}

    def __repr__(self) -> str:
        return "ApiToken(token='***')"


@dataclass(frozen=True)
class ApiKey:
    """Global API key paired with the account email."""

    key: str
    email: str

    def headers(self) -> dict[str, str]:
        return {"X-Auth-Key": self.key, "X-Auth-Email": self.email}

    def __repr__(self) -> str:
        return f"ApiKey(key='***', email={self.email!r})"


Credentials = Union[ApiToken, ApiKey]
