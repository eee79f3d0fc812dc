"""
ORM models.

One table per document collection:
- locations: named places the user saved
- alerts: notices written by an external producer; the app only reads them
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import String, Float, DateTime, Text
from sqlalchemy.orm import Mapped, mapped_column

from .db import Base


class LocationDoc(Base):
    __tablename__ = "locations"

    # Store-assigned id (uuid hex), never reused
    id: Mapped[str] = mapped_column(String(32), primary_key=True)

    name: Mapped[str] = mapped_column(String(255))
    lat: Mapped[float] = mapped_column(Float)
    lng: Mapped[float] = mapped_column(Float)

    # home / work / other
    type: Mapped[str] = mapped_column(String(16), default="other")

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)


class AlertDoc(Base):
    __tablename__ = "alerts"

    id: Mapped[str] = mapped_column(String(32), primary_key=True)

    title: Mapped[str] = mapped_column(String(255))
    message: Mapped[str] = mapped_column(Text, default="")

    # info / warning / critical
    severity: Mapped[str] = mapped_column(String(16), default="info")

    # Producers write either a real instant (naive UTC) or an already formatted
    # string. Exactly one of these is set.
    timestamp_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    timestamp_text: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)

    # Sort key (naive UTC): timestamp_at when given, otherwise the time the row was written.
    posted_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, index=True)
