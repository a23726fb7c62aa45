from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from subfinder.api.deps import get_current_user, get_optional_user, get_store
from subfinder.core.exceptions import NotFoundError
from subfinder.db.store import Store
from subfinder.models.user import UserRole
from subfinder.schemas.user import UserCreate, UserOut, UserUpdate
from subfinder.services import directory

router = APIRouter()

# Substitutes may sign themselves up; other roles are granted by these roles.
GRANTING_ROLES = {
    UserRole.org_manager: {UserRole.admin, UserRole.org_manager},
    UserRole.admin: {UserRole.admin},
}


@router.post("", response_model=UserOut, status_code=status.HTTP_201_CREATED)
def create_user(
    payload: UserCreate,
    store: Store = Depends(get_store),
    current_user: UserOut | None = Depends(get_optional_user),
) -> UserOut:
    allowed = GRANTING_ROLES.get(payload.role)
    if allowed is not None:
        if current_user is None:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Not authenticated",
                headers={"WWW-Authenticate": "Bearer"},
            )
        if current_user.role not in allowed:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient permissions")
    return directory.create_user(store, payload)


@router.get("", response_model=list[UserOut], dependencies=[Depends(get_current_user)])
def list_users(
    role: UserRole | None = Query(default=None),
    store: Store = Depends(get_store),
) -> list[UserOut]:
    return directory.list_users(store, role=role)


@router.get("/{user_id}", response_model=UserOut, dependencies=[Depends(get_current_user)])
def get_user(user_id: str, store: Store = Depends(get_store)) -> UserOut:
    user = directory.get_user(store, user_id)
    if user is None:
        raise NotFoundError("User", user_id)
    return user


@router.put("/{user_id}", response_model=UserOut, dependencies=[Depends(get_current_user)])
def update_user(user_id: str, payload: UserUpdate, store: Store = Depends(get_store)) -> UserOut:
    return directory.update_user(store, user_id, payload)


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT, dependencies=[Depends(get_current_user)])
def delete_user(user_id: str, store: Store = Depends(get_store)) -> Response:
    directory.delete_user(store, user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
