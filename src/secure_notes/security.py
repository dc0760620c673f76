import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, NamedTuple, Optional

from jose import jwt, JWTError
from jose.exceptions import JWTClaimsError
from passlib.context import CryptContext

from secure_notes.errors import TokenExpiredError, TokenMalformedError, TokenSignatureError

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(tz=timezone.utc)


class PasswordHasher:
    """
    One-way salted bcrypt hashing with a tunable work factor.

    bcrypt embeds the salt and cost in the hash string, so verify needs
    nothing but the stored hash.
    """

    def __init__(self, rounds: int = 12):
        self.rounds = rounds
        self._context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=rounds)

    def hash(self, plaintext: str) -> str:
        """Hash a plaintext password."""
        return self._context.hash(plaintext)

    def verify(self, plaintext: str, hash_string: str) -> bool:
        """
        Verify a plaintext password against its hash.

        Fails closed: a corrupt or unrecognised hash counts as a mismatch.
        """
        try:
            return self._context.verify(plaintext, hash_string)
        except Exception as exc:
            logger.warning("Password verification failed on stored hash: %s", type(exc).__name__)
            return False

    def dummy_verify(self) -> bool:
        """Burn one verify's worth of bcrypt work when there is no stored hash."""
        return self._context.dummy_verify()


class TokenClaims(NamedTuple):
    identity_id: str
    email: Optional[str]
    issued_at: datetime
    expires_at: datetime


class TokenCodec:
    """
    Issues and verifies signed, time-bounded bearer tokens (compact JWS).

    Expiry is checked against this codec's clock, so tests can move time
    without patching the JWT library.
    """

    def __init__(
        self,
        secret_key: str,
        ttl: timedelta = timedelta(hours=24),
        algorithm: str = "HS256",
        clock: Optional[Clock] = None,
    ):
        self._secret_key = secret_key
        self.ttl = ttl
        self.algorithm = algorithm
        self._clock = clock or utc_now

    # PUBLIC_INTERFACE
    def issue(self, identity_id: str, identity_email: Optional[str] = None) -> str:
        """Create a signed JWT access token for an identity."""
        issued_at = int(self._clock().timestamp())
        claims = {
            "sub": str(identity_id),
            "iat": issued_at,
            "exp": issued_at + int(self.ttl.total_seconds()),
        }
        if identity_email is not None:
            claims["email"] = identity_email
        return jwt.encode(claims, self._secret_key, algorithm=self.algorithm)

    # PUBLIC_INTERFACE
    def verify(self, token: str) -> TokenClaims:
        """
        Verify a token and return its claims.

        Raises:
            TokenMalformedError: not a decodable three-segment token, or bad claims.
            TokenSignatureError: signature does not match this codec's secret.
            TokenExpiredError: exp is in the past according to the codec clock.
        """
        if not token or token.count(".") != 2:
            raise TokenMalformedError()
        try:
            jwt.get_unverified_header(token)
            jwt.get_unverified_claims(token)
        except JWTError:
            raise TokenMalformedError()

        try:
            payload = jwt.decode(
                token,
                self._secret_key,
                algorithms=[self.algorithm],
                options={"verify_exp": False, "verify_aud": False},
            )
        except JWTClaimsError:
            raise TokenMalformedError()
        except JWTError:
            raise TokenSignatureError()

        subject = payload.get("sub")
        issued_at = payload.get("iat")
        expires_at = payload.get("exp")
        if not isinstance(subject, str) or not subject:
            raise TokenMalformedError()
        if not isinstance(issued_at, int) or not isinstance(expires_at, int):
            raise TokenMalformedError()

        if expires_at < int(self._clock().timestamp()):
            raise TokenExpiredError()

        return TokenClaims(
            identity_id=subject,
            email=payload.get("email"),
            issued_at=datetime.fromtimestamp(issued_at, tz=timezone.utc),
            expires_at=datetime.fromtimestamp(expires_at, tz=timezone.utc),
        )
