"""
Document stores for the `locations` and `alerts` collections.

Each store exposes `list()` as a live feed: an async iterator that yields the
whole collection on subscribe and again after every change. Writes made in
this process wake subscribers immediately; writes from other processes are
picked up by polling.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import AsyncIterator, Callable, Generic, List, Optional, Set, TypeVar, Union
from uuid import uuid4

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from . import models
from .errors import NetworkFailure, WeatherError
from .schemas import (
    AlertRecord,
    Coordinates,
    LocationType,
    SavedLocation,
    Severity,
    alert_timestamp,
    to_utc,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ChangeFeed(Generic[T]):
    """
    Fan-out of full collection snapshots to any number of subscribers.

    A subscriber only sees a new value when the loaded list differs from the
    last one it was given.
    """

    def __init__(self, load: Callable[[], List[T]], poll_seconds: Optional[float] = None):
        self._load = load
        self._poll_seconds = poll_seconds or None
        self._listeners: Set[asyncio.Event] = set()

    def notify(self) -> None:
        """Wake every subscriber so it re-reads the collection."""
        for event in self._listeners:
            event.set()

    async def subscribe(self) -> AsyncIterator[List[T]]:
        event = asyncio.Event()
        self._listeners.add(event)
        last: Optional[List[T]] = None
        try:
            while True:
                # clear before loading so a write racing the load is not lost
                event.clear()
                try:
                    items = self._load()
                except SQLAlchemyError as e:
                    # keep the subscription; the next change or poll retries
                    logger.error("Feed load failed: %s", e)
                    items = last
                if items != last:
                    last = items
                    yield items
                try:
                    await asyncio.wait_for(event.wait(), timeout=self._poll_seconds)
                except asyncio.TimeoutError:
                    pass
        finally:
            self._listeners.discard(event)


class LocationStore:
    """Saved locations. Ordering is insertion order."""

    def __init__(self, sessions: sessionmaker, poll_seconds: Optional[float] = None):
        self._sessions = sessions
        self.feed: ChangeFeed[SavedLocation] = ChangeFeed(self.snapshot, poll_seconds)

    @staticmethod
    def _to_location(row: models.LocationDoc) -> SavedLocation:
        return SavedLocation(
            id=row.id,
            name=row.name,
            coords=Coordinates(lat=row.lat, lng=row.lng),
            type=row.type or LocationType.other,
        )

    def snapshot(self) -> List[SavedLocation]:
        """Current contents of the collection."""
        with self._sessions() as db:
            rows = db.query(models.LocationDoc).order_by(models.LocationDoc.created_at).all()
            return [self._to_location(r) for r in rows]

    def list(self) -> AsyncIterator[List[SavedLocation]]:
        return self.feed.subscribe()

    def add(self, name: str, coords: Coordinates, type: LocationType = LocationType.other) -> str:
        """Store a new location and return its store-assigned id."""
        name = name.strip()
        if not name:
            raise WeatherError("Location name must not be empty.")

        doc_id = uuid4().hex
        row = models.LocationDoc(
            id=doc_id,
            name=name,
            lat=coords.lat,
            lng=coords.lng,
            type=LocationType(type).value,
            created_at=datetime.utcnow(),
        )
        self._write(lambda db: db.add(row), f"save location '{name}'")
        logger.info("Saved location %s (%s)", doc_id, name)
        return doc_id

    def remove(self, doc_id: str) -> None:
        """Delete one location. Unknown ids are a failed write."""

        def delete(db: Session) -> None:
            row = db.get(models.LocationDoc, doc_id)
            if row is None:
                raise NetworkFailure("Location not found.")
            db.delete(row)

        self._write(delete, f"delete location {doc_id}")
        logger.info("Deleted location %s", doc_id)

    def _write(self, change: Callable[[Session], None], what: str) -> None:
        # The session rolls back on any exception, so a failed write leaves the store untouched.
        try:
            with self._sessions() as db:
                change(db)
                db.commit()
        except SQLAlchemyError as e:
            logger.error("Could not %s: %s", what, e)
            raise NetworkFailure(f"Could not {what}.") from e
        self.feed.notify()


class AlertStore:
    """Alert records, most recent first. The app never writes here."""

    def __init__(self, sessions: sessionmaker, poll_seconds: Optional[float] = None):
        self._sessions = sessions
        self.feed: ChangeFeed[AlertRecord] = ChangeFeed(self.snapshot, poll_seconds)

    @staticmethod
    def _to_alert(row: models.AlertDoc) -> AlertRecord:
        return AlertRecord(
            id=row.id,
            title=row.title,
            message=row.message or "",
            severity=row.severity or Severity.info,
            timestamp=alert_timestamp(row.timestamp_at, row.timestamp_text).display(),
        )

    def snapshot(self) -> List[AlertRecord]:
        with self._sessions() as db:
            rows = (
                db.query(models.AlertDoc)
                .order_by(models.AlertDoc.posted_at.desc())
                .all()
            )
            alerts = []
            for r in rows:
                try:
                    alerts.append(self._to_alert(r))
                except ValidationError as e:
                    # one bad document from a producer must not hide the rest
                    logger.warning("Skipping alert %s: %s", r.id, e)
            return alerts

    def list(self) -> AsyncIterator[List[AlertRecord]]:
        return self.feed.subscribe()


def publish_alert(
    sessions: sessionmaker,
    title: str,
    message: str,
    severity: Severity = Severity.info,
    timestamp: Union[datetime, str, None] = None,
) -> str:
    """
    Insert an alert document the way an external producer would.

    `timestamp` may be a datetime or an already formatted string; when it is
    a string (or missing) the write time is used for ordering. Datetimes are
    stored as naive UTC; naive input is read as local time.
    """
    now = datetime.utcnow()
    at = to_utc(timestamp) if isinstance(timestamp, datetime) else None
    row = models.AlertDoc(
        id=uuid4().hex,
        title=title,
        message=message,
        severity=Severity(severity).value,
        timestamp_at=at,
        timestamp_text=timestamp if isinstance(timestamp, str) else None,
        posted_at=at or now,
    )
    with sessions() as db:
        db.add(row)
        db.commit()
        return row.id
