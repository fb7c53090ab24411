from typing import Optional

import jwt
from jwt.exceptions import DecodeError, InvalidTokenError as JWTInvalidTokenError


def unverified_expiry(token: str) -> Optional[float]:
    """
    Read the `exp` claim of a Keycloak access token without verifying it.

    The token is only ever sent back to the server that issued it, so the
    signature is not checked here; this is used purely to decide how long a
    cached token may be reused. Returns None for opaque or malformed tokens.
    """
    try:
        claims = jwt.decode(
            token,
            options={"verify_signature": False, "verify_exp": False, "verify_aud": False},
        )
    except (DecodeError, JWTInvalidTokenError):
        return None

    exp = claims.get("exp")
    if isinstance(exp, (int, float)):
        return float(exp)
    return None
