from fastapi import APIRouter, Depends, Query, Response, status

from subfinder.api.deps import get_current_user, get_store
from subfinder.core.exceptions import NotFoundError
from subfinder.db.store import Store
from subfinder.schemas.school_class import ClassCreate, ClassOut, ClassUpdate
from subfinder.services import directory

router = APIRouter(dependencies=[Depends(get_current_user)])


@router.post("", response_model=ClassOut, status_code=status.HTTP_201_CREATED)
def create_class(payload: ClassCreate, store: Store = Depends(get_store)) -> ClassOut:
    return directory.create_class(store, payload)


@router.get("", response_model=list[ClassOut])
def list_classes(
    organization_id: str | None = Query(default=None),
    store: Store = Depends(get_store),
) -> list[ClassOut]:
    return directory.list_classes(store, organization_id=organization_id)


@router.get("/{class_id}", response_model=ClassOut)
def get_class(class_id: str, store: Store = Depends(get_store)) -> ClassOut:
    school_class = directory.get_class(store, class_id)
    if school_class is None:
        raise NotFoundError("Class", class_id)
    return school_class


@router.put("/{class_id}", response_model=ClassOut)
def update_class(class_id: str, payload: ClassUpdate, store: Store = Depends(get_store)) -> ClassOut:
    return directory.update_class(store, class_id, payload)


@router.delete("/{class_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_class(class_id: str, store: Store = Depends(get_store)) -> Response:
    directory.delete_class(store, class_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
