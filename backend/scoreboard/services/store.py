import json
import time
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError

from scoreboard import db
from scoreboard.models import Snapshot


class SnapshotStore:
    """Durable key-value store for serialized engine state.

    Each call runs in its own application context so it can be used from
    request handlers and from the clock's background task alike. Unreadable
    rows are reported as missing; write failures are logged and rolled back.
    """

    def __init__(self, app):
        self.app = app

    def load(self, key: str) -> Optional[Dict[str, Any]]:
        with self.app.app_context():
            try:
                row = db.session.get(Snapshot, key)
            except SQLAlchemyError as exc:
                db.session.rollback()
                self.app.logger.warning(f"[store-error] key={key} load failed: {exc}")
                return None
            if row is None:
                return None
            try:
                data = json.loads(row.payload)
            except (TypeError, ValueError):
                self.app.logger.warning(f"[store-malformed] key={key} payload is not JSON")
                return None
            if not isinstance(data, dict):
                self.app.logger.warning(f"[store-malformed] key={key} payload is not an object")
                return None
            return data

    def save(self, key: str, payload: Dict[str, Any]) -> None:
        with self.app.app_context():
            try:
                row = db.session.get(Snapshot, key) or Snapshot(key=key)
                row.payload = json.dumps(payload)
                row.updated_at = time.time()
                db.session.add(row)
                db.session.commit()
            except SQLAlchemyError as exc:
                db.session.rollback()
                self.app.logger.error(f"[store-error] key={key} save failed: {exc}")

    def describe(self) -> List[Dict[str, Any]]:
        with self.app.app_context():
            try:
                return [row.to_dict() for row in Snapshot.query.order_by(Snapshot.key).all()]
            except SQLAlchemyError:
                db.session.rollback()
                return []
