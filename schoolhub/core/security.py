"""Security utilities for password hashing and session token management."""

import secrets
from datetime import datetime, timedelta, UTC
from functools import lru_cache
from typing import Any, Callable, Dict, Mapping, Optional

from argon2 import PasswordHasher
from argon2.exceptions import VerifyMismatchError
from jose import JWTError, jwt

from schoolhub.config import Settings, settings
from schoolhub.core.exceptions import InvalidSignature, MalformedToken, TokenExpired

# Password hasher using Argon2id (OWASP recommended)
ph = PasswordHasher()

# Claims added by the codec itself; stripped again by TokenCodec.verify()
REGISTERED_CLAIMS = frozenset({"exp", "iat", "jti"})

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(UTC)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a plain password against an Argon2 hashed password."""
    try:
        ph.verify(hashed_password, plain_password)
        return True
    except VerifyMismatchError:
        return False


def get_password_hash(password: str) -> str:
    """Generate Argon2 password hash."""
    return ph.hash(password)


@lru_cache(maxsize=1)
def dummy_password_hash() -> str:
    """Hash checked when a login names an unknown account.

    Keeps the cost of a miss equal to the cost of a wrong password.
    """
    return ph.hash(secrets.token_hex(16))


class TokenCodec:
    """Issue and verify signed session tokens (JWT, HS256 by default).

    Keys are held in a ring keyed by key id. The active key signs and its id
    is written to the ``kid`` header; retired keys only verify, so the secret
    can be rotated without logging everybody out.
    """

    def __init__(
        self,
        keys: Mapping[str, str],
        active_key_id: str,
        algorithm: str = "HS256",
        default_ttl: timedelta = timedelta(hours=1),
        clock: Clock = utc_now,
    ):
        if active_key_id not in keys:
            raise ValueError(f"Active key id {active_key_id!r} is not in the key ring")
        if not all(keys.values()):
            raise ValueError("Signing keys must not be empty")

        self._keys: Dict[str, str] = dict(keys)
        self.active_key_id = active_key_id
        self.algorithm = algorithm
        self.default_ttl = default_ttl
        self._clock = clock

    @classmethod
    def from_settings(
        cls, config: Settings = settings, clock: Clock = utc_now
    ) -> "TokenCodec":
        """Build a codec from application settings."""
        return cls(
            config.signing_keys,
            config.SECRET_KEY_ID,
            algorithm=config.ALGORITHM,
            default_ttl=config.access_token_ttl,
            clock=clock,
        )

    def issue(self, claims: Mapping[str, Any], ttl: Optional[timedelta] = None) -> str:
        """Sign ``claims`` plus expiry, issue time and a random token id."""
        now = self._clock()
        expire = now + (ttl if ttl is not None else self.default_ttl)

        to_encode = dict(claims)
        to_encode.update(
            exp=int(expire.timestamp()),
            iat=int(now.timestamp()),
            jti=secrets.token_hex(16),
        )
        return jwt.encode(
            to_encode,
            self._keys[self.active_key_id],
            algorithm=self.algorithm,
            headers={"kid": self.active_key_id},
        )

    def decode(self, token: str) -> Dict[str, Any]:
        """Verify ``token`` and return its full payload, registered claims included.

        Raises:
            MalformedToken: not a decodable JWT, or no numeric ``exp``
            InvalidSignature: bad signature, algorithm or key id
            TokenExpired: ``exp`` is not in the future
        """
        try:
            header = jwt.get_unverified_header(token)
            jwt.get_unverified_claims(token)
        except JWTError as e:
            raise MalformedToken() from e

        kid = header.get("kid")
        key = self._keys.get(kid) if isinstance(kid, str) else None
        if key is None:
            raise InvalidSignature("Unknown signing key")

        try:
            # Expiry is checked below against the injected clock
            payload = jwt.decode(
                token,
                key,
                algorithms=[self.algorithm],
                options={"verify_exp": False},
            )
        except JWTError as e:
            raise InvalidSignature() from e

        exp = payload.get("exp")
        if isinstance(exp, bool) or not isinstance(exp, (int, float)):
            raise MalformedToken("Token has no expiry")
        if exp <= self._clock().timestamp():
            raise TokenExpired()

        return payload

    def verify(self, token: str) -> Dict[str, Any]:
        """Verify ``token`` and return the claims it was issued with."""
        payload = self.decode(token)
        return {
            name: value
            for name, value in payload.items()
            if name not in REGISTERED_CLAIMS
        }


# Process-wide codec built from settings
token_codec = TokenCodec.from_settings()
