import logging

from fastapi import APIRouter, Depends

from subfinder.api.deps import get_current_user, get_store
from subfinder.core.security import create_access_token
from subfinder.db.store import Store
from subfinder.schemas.user import Token, UserLogin, UserOut
from subfinder.services import directory

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/login", response_model=Token)
def login(payload: UserLogin, store: Store = Depends(get_store)) -> Token:
    user = directory.authenticate(store, payload.username, payload.password)
    logger.info("User %s logged in", user.username)
    return Token(access_token=create_access_token(user.id), token_type="bearer", user=user)


@router.get("/me", response_model=UserOut)
def me(current_user: UserOut = Depends(get_current_user)) -> UserOut:
    return current_user
