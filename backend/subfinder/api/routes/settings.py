from fastapi import APIRouter, Depends

from subfinder.api.deps import get_current_user, get_store
from subfinder.core.exceptions import NotFoundError
from subfinder.db.store import Store
from subfinder.schemas.setting import SettingOut, SettingUpdate
from subfinder.services import directory

router = APIRouter(dependencies=[Depends(get_current_user)])


@router.get("/settings", response_model=list[SettingOut])
def list_settings(store: Store = Depends(get_store)) -> list[SettingOut]:
    return directory.list_settings(store)


@router.get("/settings/{key}", response_model=SettingOut)
def get_setting(key: str, store: Store = Depends(get_store)) -> SettingOut:
    setting = directory.get_setting(store, key)
    if setting is None:
        raise NotFoundError("Setting", key)
    return setting


@router.put("/settings/{key}", response_model=SettingOut)
def put_setting(key: str, payload: SettingUpdate, store: Store = Depends(get_store)) -> SettingOut:
    return directory.put_setting(store, key, payload)
