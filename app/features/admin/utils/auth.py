import jwt
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

security = HTTPBearer()


def decode_access_token(token: str, secret_key: str, algorithm: str) -> dict:
    """Decode and verify a JWT access token"""
    try:
        return jwt.decode(token, secret_key, algorithms=[algorithm])
    except jwt.ExpiredSignatureError:
        raise ValueError("Token has expired")
    except jwt.PyJWTError:
        raise ValueError("Invalid token")


async def get_current_admin(
    request: Request,
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> dict:
    """
    Admin guard for operational endpoints.

    Tokens are issued by the external auth provider and must carry
    `sub`, `email` and `is_admin: true`.
    """
    settings = request.app.state.settings
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    try:
        payload = decode_access_token(credentials.credentials, settings.JWT_SECRET_KEY, settings.ALGORITHM)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
            headers={"WWW-Authenticate": "Bearer"},
        ) from e

    admin_id = payload.get("sub")
    email = payload.get("email")
    if admin_id is None or email is None:
        raise credentials_exception

    if not payload.get("is_admin", False):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden: Admin access required"
        )

    return {"id": str(admin_id), "email": email}
