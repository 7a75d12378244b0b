from fastapi import Header, HTTPException, Request
from jose import jwt, JWTError

from kore.config import AuthConfig


def decode_token(token: str, auth_config: AuthConfig) -> dict:
    options = {"verify_aud": auth_config.audience is not None}
    return jwt.decode(
        token,
        auth_config.secret,
        algorithms=[auth_config.algorithm],
        audience=auth_config.audience,
        options=options,
    )


def get_current_user_id(
    request: Request,
    authorization: str = Header(None),
) -> str:
    """
    Verify the bearer token and return its ``sub`` claim.

    Tokens are issued by the identity provider; this service only checks
    them against the AuthConfig the app was created with.
    """
    if not authorization:
        raise HTTPException(status_code=401, detail="Missing auth header")

    if not authorization.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Invalid auth header")

    token = authorization.replace("Bearer ", "", 1)

    try:
        payload = decode_token(token, request.app.state.auth_config)
    except JWTError:
        raise HTTPException(status_code=401, detail="Invalid token")

    user_id = payload.get("sub")
    if not user_id:
        raise HTTPException(status_code=401, detail="Invalid token")

    return str(user_id)
