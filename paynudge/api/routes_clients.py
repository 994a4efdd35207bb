from fastapi import APIRouter, Response, status

from paynudge.api.dependencies import CurrentUserDep, DbDep
from paynudge.models import schemas
from paynudge.services.client_service import ClientService

router = APIRouter()


@router.get("/", response_model=list[schemas.ClientOut])
def list_clients(current_user_id: CurrentUserDep, db: DbDep):
    return ClientService(db).list_clients(current_user_id)


@router.post("/", response_model=schemas.ClientOut, status_code=status.HTTP_201_CREATED)
def create_client(data: schemas.ClientCreate, current_user_id: CurrentUserDep, db: DbDep):
    return ClientService(db).create_client(current_user_id, data)


@router.get("/{client_id}", response_model=schemas.ClientOut)
def get_client(client_id: int, current_user_id: CurrentUserDep, db: DbDep):
    return ClientService(db).get_client(current_user_id, client_id)


@router.patch("/{client_id}", response_model=schemas.ClientOut)
def update_client(client_id: int, data: schemas.ClientUpdate, current_user_id: CurrentUserDep, db: DbDep):
    return ClientService(db).update_client(current_user_id, client_id, data)


@router.delete("/{client_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_client(client_id: int, current_user_id: CurrentUserDep, db: DbDep):
    ClientService(db).delete_client(current_user_id, client_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
