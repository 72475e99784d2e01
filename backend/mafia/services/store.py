"""Document store over the SQL database.

The game engine only sees plain documents addressed by ``(collection, id)``.
Every call commits on its own; any database error rolls the session back
and surfaces as :class:`StoreFailure`, so a failed write never leaves a
partial update behind.
"""
import logging
from typing import Any, Dict, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from mafia.errors import NotFound, StoreFailure
from mafia.models import GameStateRecord, Room, User


COLLECTIONS = {
    'users': User,
    'rooms': Room,
    'game_states': GameStateRecord,
}


class SqlDocumentStore:

    def __init__(self, db, logger: Optional[logging.Logger] = None):
        self.db = db
        self.logger = logger or logging.getLogger(__name__)

    def _model(self, collection: str):
        try:
            return COLLECTIONS[collection]
        except KeyError:
            raise NotFound(f"Unknown collection '{collection}'") from None

    def _fail(self, op: str, collection: str, exc: Exception) -> StoreFailure:
        self.db.session.rollback()
        self.logger.error(f"[store-fail] op={op} collection={collection} error={exc}")
        return StoreFailure(f"Store {op} on {collection} failed: {exc}")

    def _fetch(self, model, doc_id: str):
        # populate_existing: rows may have been committed by another session (timer threads)
        row = self.db.session.get(model, doc_id, populate_existing=True)
        if row is None:
            raise NotFound(f"{model.__tablename__} '{doc_id}' not found")
        return row

    def get(self, collection: str, doc_id: str) -> Dict[str, Any]:
        model = self._model(collection)
        if not doc_id:
            raise NotFound(f"{model.__tablename__} id is required")
        try:
            return self._fetch(model, doc_id).to_document()
        except SQLAlchemyError as exc:
            raise self._fail('get', collection, exc) from exc

    def create(self, collection: str, document: Dict[str, Any]) -> Dict[str, Any]:
        model = self._model(collection)
        row = model()
        if document.get('id'):
            row.id = document['id']
        row.apply_document({k: v for k, v in document.items() if k != 'id'})
        try:
            self.db.session.add(row)
            self.db.session.commit()
            return row.to_document()
        except SQLAlchemyError as exc:
            raise self._fail('create', collection, exc) from exc

    def update(self, collection: str, doc_id: str, partial: Dict[str, Any]) -> Dict[str, Any]:
        model = self._model(collection)
        try:
            row = self._fetch(model, doc_id)
            row.apply_document(partial)
            self.db.session.add(row)
            self.db.session.commit()
            return row.to_document()
        except SQLAlchemyError as exc:
            raise self._fail('update', collection, exc) from exc

    def ping(self) -> None:
        try:
            self.db.session.execute(select(Room.id).limit(1)).all()
        except SQLAlchemyError as exc:
            raise self._fail('ping', 'rooms', exc) from exc
