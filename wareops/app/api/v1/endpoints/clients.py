from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from wareops.app.api.deps import get_db, service_errors
from wareops.app.db.models.models_v1 import Client
from wareops.services import directory

router = APIRouter(prefix="/clients")


class ClientCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    project_name: str | None = Field(default=None, max_length=255)
    address: str | None = None


def _client(c: Client) -> dict:
    return {
        "id": c.id,
        "name": c.name,
        "project_name": c.project_name,
        "address": c.address,
    }


@router.get("")
def list_clients(db: Session = Depends(get_db)):
    return [_client(c) for c in directory.list_clients(db)]


@router.get("/{client_id}")
def get_client(client_id: int, db: Session = Depends(get_db)):
    with service_errors():
        c = directory.get_client(db, client_id)
        orders = directory.client_order_count(db, client_id)
    return {**_client(c), "orders": orders}


@router.post("", status_code=201)
def create_client(payload: ClientCreate, db: Session = Depends(get_db)):
    with service_errors():
        client_id = directory.create_client(
            db,
            name=payload.name,
            project_name=payload.project_name,
            address=payload.address,
        )
        c = directory.get_client(db, client_id)
    return _client(c)
