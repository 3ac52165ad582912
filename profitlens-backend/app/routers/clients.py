from __future__ import annotations

from typing import List

from fastapi import APIRouter, status

from ..models import ClientCreate, ClientUpdate
from ..services.projects import create_client, list_clients, update_client

router = APIRouter(prefix="/api/v2/clients", tags=["clients"])


@router.get("")
def clients_endpoint() -> List[dict]:
    return list_clients()


@router.post("", status_code=status.HTTP_201_CREATED)
def create_client_endpoint(payload: ClientCreate):
    return create_client(payload)


@router.put("/{client_id}")
def update_client_endpoint(client_id: str, payload: ClientUpdate):
    return update_client(client_id, payload)
