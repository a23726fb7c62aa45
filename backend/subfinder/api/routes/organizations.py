from fastapi import APIRouter, Depends, Response, status

from subfinder.api.deps import get_current_user, get_store
from subfinder.core.exceptions import NotFoundError
from subfinder.db.store import Store
from subfinder.schemas.organization import OrganizationCreate, OrganizationOut, OrganizationUpdate
from subfinder.services import directory

router = APIRouter(dependencies=[Depends(get_current_user)])


@router.post("", response_model=OrganizationOut, status_code=status.HTTP_201_CREATED)
def create_organization(payload: OrganizationCreate, store: Store = Depends(get_store)) -> OrganizationOut:
    return directory.create_organization(store, payload)


@router.get("", response_model=list[OrganizationOut])
def list_organizations(store: Store = Depends(get_store)) -> list[OrganizationOut]:
    return directory.list_organizations(store)


@router.get("/{organization_id}", response_model=OrganizationOut)
def get_organization(organization_id: str, store: Store = Depends(get_store)) -> OrganizationOut:
    organization = directory.get_organization(store, organization_id)
    if organization is None:
        raise NotFoundError("Organization", organization_id)
    return organization


@router.put("/{organization_id}", response_model=OrganizationOut)
def update_organization(
    organization_id: str,
    payload: OrganizationUpdate,
    store: Store = Depends(get_store),
) -> OrganizationOut:
    return directory.update_organization(store, organization_id, payload)


@router.delete("/{organization_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_organization(organization_id: str, store: Store = Depends(get_store)) -> Response:
    directory.delete_organization(store, organization_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
