from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from paynudge.core.exceptions import ClientNotFoundError
from paynudge.models import models, schemas

logger = logging.getLogger(__name__)


class ClientService:
    """Owner-scoped client CRUD."""

    def __init__(self, db: Session):
        self.db = db

    def list_clients(self, user_id: int) -> list[models.Client]:
        return (
            self.db.query(models.Client)
            .filter(models.Client.user_id == user_id)
            .order_by(models.Client.name, models.Client.id)
            .all()
        )

    def get_client(self, user_id: int, client_id: int) -> models.Client:
        client = (
            self.db.query(models.Client)
            .filter(models.Client.id == client_id, models.Client.user_id == user_id)
            .one_or_none()
        )
        if not client:
            raise ClientNotFoundError(client_id)
        return client

    def create_client(self, user_id: int, data: schemas.ClientCreate) -> models.Client:
        client = models.Client(user_id=user_id, **data.model_dump())
        self.db.add(client)
        self.db.commit()
        self.db.refresh(client)
        logger.info("Created client %s for user %s", client.id, user_id)
        return client

    def update_client(self, user_id: int, client_id: int, data: schemas.ClientUpdate) -> models.Client:
        client = self.get_client(user_id, client_id)
        for field, value in data.model_dump(exclude_unset=True).items():
            if field == "name" and value is None:
                continue
            setattr(client, field, value)
        self.db.commit()
        self.db.refresh(client)
        return client

    def delete_client(self, user_id: int, client_id: int) -> None:
        """Delete a client together with its invoices and their reminder history."""
        client = self.get_client(user_id, client_id)
        self.db.delete(client)
        self.db.commit()
        logger.info("Deleted client %s for user %s", client_id, user_id)
