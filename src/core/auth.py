"""
Bearer token issuance and verification.

The verifier is a single pass over the Authorization header:

    header -> split on "Bearer" -> token text -> signature -> issuer -> audience
           [-> expiration, only when enforcement is enabled]

Each failed step ends in a ClaimsRejectedError carrying a RejectionReason. A token
that passes every step yields its full Claims, which the API layer attaches to the
request for downstream handlers.
"""
import uuid
from datetime import UTC, datetime, timedelta
from enum import Enum

import bcrypt
from jose import JWTError, jwt
from pydantic import BaseModel, ConfigDict, ValidationError

from core.config import JWTSettings

ALGORITHM = "HS256"
BEARER_KEYWORD = "Bearer"


class RejectionReason(Enum):
    """Terminal REJECTED states of the verifier."""

    MALFORMED_HEADER = "malformed-header"
    EMPTY_TOKEN = "empty-token"
    UNPARSABLE = "unparsable"
    INVALID_ISSUER = "invalid-issuer"
    INVALID_AUDIENCE = "invalid-audience"
    EXPIRED = "expired"


class ClaimsRejectedError(Exception):
    """Raised when a bearer token fails verification."""

    def __init__(self, reason: RejectionReason) -> None:
        self.reason = reason
        super().__init__(f"Token rejected: {reason.value}")


class Claims(BaseModel):
    """Decoded payload of a signed token."""

    model_config = ConfigDict(extra="ignore")

    # Registered claims
    iss: str = ""
    aud: str = ""
    jti: str = ""
    iat: int | None = None

    scope: str = ""
    email: str = ""
    user_id: str = ""
    # Application-level expiry, distinct from the registered "exp" claim
    expiration: datetime | None = None
    subscriber_type: str = ""
    subscription_level: str = ""


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt()).decode()


def verify_password(plain: str, hashed: str) -> bool:
    try:
        return bcrypt.checkpw(plain.encode(), hashed.encode())
    except ValueError:
        # Stored value is not a bcrypt hash
        return False


def create_access_token(user_id: str, email: str, settings: JWTSettings) -> str:
    """Sign a token for the given user."""
    now = datetime.now(UTC)
    expiration = None
    if settings.expiration_minutes is not None:
        expiration = now + timedelta(minutes=settings.expiration_minutes)

    claims = Claims(
        iss=settings.issuer,
        aud=settings.audience,
        jti=str(uuid.uuid4()),
        iat=int(now.timestamp()),
        scope="user",
        email=email,
        user_id=user_id,
        expiration=expiration,
        subscriber_type="free",
        subscription_level="none",
    )
    return jwt.encode(claims.model_dump(mode="json"), settings.secret, algorithm=ALGORITHM)


def get_token_from_header(header: str | None) -> str:
    """
    Extract the token text from an Authorization header value.

    The value must split on the literal "Bearer" into exactly two segments; any
    prefix before the keyword is ignored. Returns the trimmed second segment, which
    may be empty.
    """
    segments = (header or "").split(BEARER_KEYWORD)
    if len(segments) != 2:
        raise ClaimsRejectedError(RejectionReason.MALFORMED_HEADER)
    return segments[1].strip()


def decode_claims(token: str, settings: JWTSettings) -> Claims:
    """Verify the signature and decode the claim set, without issuer/audience checks."""
    try:
        payload = jwt.decode(
            token,
            settings.secret,
            algorithms=[ALGORITHM],
            options={"verify_aud": False, "verify_iss": False},
        )
        return Claims.model_validate(payload)
    except (JWTError, ValidationError) as e:
        raise ClaimsRejectedError(RejectionReason.UNPARSABLE) from e


def verify_claims(claims: Claims, settings: JWTSettings) -> None:
    """Check issuer and audience. Both are required: an empty claim never matches."""
    if not claims.iss or claims.iss != settings.issuer:
        raise ClaimsRejectedError(RejectionReason.INVALID_ISSUER)
    if not claims.aud or claims.aud != settings.audience:
        raise ClaimsRejectedError(RejectionReason.INVALID_AUDIENCE)


def is_expired(claims: Claims, now: datetime | None = None) -> bool:
    """True when the claims carry an expiration that is already in the past."""
    if claims.expiration is None:
        return False
    expiration = claims.expiration
    if expiration.tzinfo is None:
        expiration = expiration.replace(tzinfo=UTC)
    return expiration < (now or datetime.now(UTC))


def is_token_expired(token: str, settings: JWTSettings) -> bool:
    """
    Check the expiration claim of a raw token.

    Tokens that fail to decode are reported as not expired; decoding failures are
    the verifier's concern, not this check's.
    """
    try:
        claims = decode_claims(token, settings)
    except ClaimsRejectedError:
        return False
    return is_expired(claims)


def verify_token(token: str, settings: JWTSettings) -> Claims:
    """Run the verifier from the token text onward."""
    if not token:
        raise ClaimsRejectedError(RejectionReason.EMPTY_TOKEN)

    claims = decode_claims(token, settings)
    verify_claims(claims, settings)

    if settings.enforce_expiration and is_expired(claims):
        raise ClaimsRejectedError(RejectionReason.EXPIRED)
    return claims


def verify_authorization_header(header: str | None, settings: JWTSettings) -> Claims:
    """
    Run the full verifier over an Authorization header value.

    Args:
        header:
            Raw header value; None is treated as an empty header.
        settings:
            Secret, issuer and audience to verify against.

    Returns:
        The verified Claims.

    Raises:
        ClaimsRejectedError: With the reason of the first failed step.
    """
    token = get_token_from_header(header)
    return verify_token(token, settings)
