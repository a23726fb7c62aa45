from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from starlette.requests import HTTPConnection

from subfinder.core.config import get_settings
from subfinder.core.security import decode_token
from subfinder.db.store import Store
from subfinder.schemas.user import UserOut
from subfinder.services import directory
from subfinder.services.notification_channels import NotificationChannel, build_channel

security = HTTPBearer()
optional_security = HTTPBearer(auto_error=False)


def get_store(connection: HTTPConnection) -> Store:
    store = getattr(connection.app.state, "store", None)
    if store is None:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Database is not initialized")
    return store


def get_notification_channel() -> NotificationChannel:
    return build_channel(get_settings())


def user_from_token(store: Store, token: str) -> UserOut | None:
    try:
        payload = decode_token(token)
    except JWTError:
        return None
    user_id = payload.get("sub")
    if not user_id:
        return None
    user = directory.get_user(store, user_id)
    if user is None or not user.is_active:
        return None
    return user


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    store: Store = Depends(get_store),
) -> UserOut:
    user = user_from_token(store, credentials.credentials)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


def get_optional_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(optional_security),
    store: Store = Depends(get_store),
) -> UserOut | None:
    if credentials is None:
        return None
    return get_current_user(credentials, store)
