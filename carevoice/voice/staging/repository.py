"""Care plan persistence seam.

The staging store writes through a CarePlanRepository so a real care plan
backend can be substituted without touching the interpreter or the update
lifecycle. Two implementations ship: in-memory (default, session only) and
SQLite (the voice database).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path

from carevoice.voice import get_connection
from carevoice.voice.models import CarePlanUpdate, CommandType, UpdateStatus


class CarePlanRepository(ABC):
    """Create, list, and update the status of care plan updates."""

    @abstractmethod
    def create(self, update: CarePlanUpdate, session_id: str | None = None) -> None:
        """Record a newly staged update."""

    @abstractmethod
    def list(
        self,
        client_name: str | None = None,
        status: UpdateStatus | None = None,
        limit: int = 50,
    ) -> list[CarePlanUpdate]:
        """List updates, most recent first."""

    @abstractmethod
    def update_status(self, update_id: str, status: UpdateStatus) -> bool:
        """Set an update's status. Returns False if the id is unknown."""


class InMemoryCarePlanRepository(CarePlanRepository):
    """Keeps updates in process memory."""

    def __init__(self):
        self._updates: dict[str, CarePlanUpdate] = {}

    def create(self, update: CarePlanUpdate, session_id: str | None = None) -> None:
        self._updates[update.id] = CarePlanUpdate(**vars(update))

    def list(
        self,
        client_name: str | None = None,
        status: UpdateStatus | None = None,
        limit: int = 50,
    ) -> list[CarePlanUpdate]:
        updates = [
            u for u in self._updates.values()
            if (client_name is None or u.client_name == client_name)
            and (status is None or u.status == status)
        ]
        updates.sort(key=lambda u: u.timestamp, reverse=True)
        return updates[:limit]

    def update_status(self, update_id: str, status: UpdateStatus) -> bool:
        update = self._updates.get(update_id)
        if update is None:
            return False
        update.status = status
        return True


class SqliteCarePlanRepository(CarePlanRepository):
    """Stores updates in the care_plan_updates table."""

    def __init__(self, db_path: Path | None = None):
        self.db_path = db_path

    def create(self, update: CarePlanUpdate, session_id: str | None = None) -> None:
        conn = get_connection(self.db_path)
        conn.execute(
            """INSERT INTO care_plan_updates
               (id, session_id, client_name, update_type, content,
                confidence, status, created_at)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                update.id,
                session_id,
                update.client_name,
                update.update_type.value,
                update.content,
                update.confidence,
                update.status.value,
                update.timestamp.isoformat(),
            ),
        )
        conn.commit()
        conn.close()

    def list(
        self,
        client_name: str | None = None,
        status: UpdateStatus | None = None,
        limit: int = 50,
    ) -> list[CarePlanUpdate]:
        query = "SELECT * FROM care_plan_updates WHERE 1=1"
        params: list = []

        if client_name:
            query += " AND client_name = ?"
            params.append(client_name)
        if status:
            query += " AND status = ?"
            params.append(status.value)

        query += " ORDER BY created_at DESC LIMIT ?"
        params.append(limit)

        conn = get_connection(self.db_path)
        rows = conn.execute(query, params).fetchall()
        conn.close()

        return [
            CarePlanUpdate(
                id=row["id"],
                client_name=row["client_name"],
                update_type=CommandType(row["update_type"]),
                content=row["content"],
                timestamp=datetime.fromisoformat(row["created_at"]),
                confidence=row["confidence"] or 0.0,
                status=UpdateStatus(row["status"]),
            )
            for row in rows
        ]

    def update_status(self, update_id: str, status: UpdateStatus) -> bool:
        conn = get_connection(self.db_path)
        cursor = conn.execute(
            """UPDATE care_plan_updates
               SET status = ?, updated_at = CURRENT_TIMESTAMP
               WHERE id = ?""",
            (status.value, update_id),
        )
        conn.commit()
        conn.close()
        return cursor.rowcount > 0
