"""
WorkoutStore: persistence for WorkoutSummary rows.

Each operation opens its own session and commits once, so concurrent
ingestions are serialized by the database's own transaction handling.
Returned rows are detached from the session and safe to use after it closes.
"""
import logging
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from fitlog.ingest.errors import StoreError
from fitlog.models.workout import WorkoutSummary

logger = logging.getLogger(__name__)


class WorkoutStore:
    """Append-only log of workout summaries."""

    def __init__(self, engine):
        """
        Args:
            engine: SQLAlchemy engine (SQLModel create_engine result).
        """
        self.engine = engine

    def create(self, summary: WorkoutSummary) -> int:
        """
        Insert one summary row.

        Returns:
            The new row's primary key.

        Raises:
            StoreError: if the insert fails; nothing is written.
        """
        with Session(self.engine) as session:
            try:
                session.add(summary)
                session.commit()
                session.refresh(summary)
            except SQLAlchemyError as exc:
                session.rollback()
                raise StoreError(f"could not insert workout: {exc}") from exc
        logger.debug("Stored workout %s (%s)", summary.id, summary.filename)
        return summary.id

    def list_all(self) -> List[WorkoutSummary]:
        """All summaries, newest upload first."""
        with Session(self.engine) as session:
            try:
                return list(session.exec(
                    select(WorkoutSummary)
                    .order_by(WorkoutSummary.uploaded_at.desc(), WorkoutSummary.id.desc())
                ).all())
            except SQLAlchemyError as exc:
                raise StoreError(f"could not list workouts: {exc}") from exc

    def get(self, workout_id: int) -> Optional[WorkoutSummary]:
        with Session(self.engine) as session:
            try:
                return session.get(WorkoutSummary, workout_id)
            except SQLAlchemyError as exc:
                raise StoreError(f"could not load workout {workout_id}: {exc}") from exc

    def delete(self, workout_id: int) -> bool:
        """Delete one summary. Returns False if it didn't exist."""
        with Session(self.engine) as session:
            try:
                summary = session.get(WorkoutSummary, workout_id)
                if summary is None:
                    return False
                session.delete(summary)
                session.commit()
            except SQLAlchemyError as exc:
                session.rollback()
                raise StoreError(f"could not delete workout {workout_id}: {exc}") from exc
        logger.info("Deleted workout %s", workout_id)
        return True
