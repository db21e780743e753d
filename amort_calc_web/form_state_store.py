"""Persistence layer for the calculator's form state.

The web form remembers what the user last typed (loan amount, rate, fees,
per-installment prepayments) so that a reload shows the same table. State is
kept server side, keyed by a per-session token, in any SQLAlchemy-compatible
database. It defaults to SQLite for local development.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy import Column, DateTime, String, Text, create_engine, select
from sqlalchemy.orm import declarative_base, sessionmaker

logger = logging.getLogger(__name__)

Base = declarative_base()

STATE_KEY = "amortization-ui-state-v1"


class FormStateModel(Base):
    __tablename__ = "form_state"

    user_token = Column(String(64), primary_key=True)
    state_key = Column(String(64), primary_key=True, default=STATE_KEY)
    state_json = Column(Text, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)


class FormStateStore:
    """Database-backed key-value store of raw form fields."""

    def __init__(self, url: str, *, state_key: str = STATE_KEY) -> None:
        self._engine = create_engine(url, future=True)
        Base.metadata.create_all(self._engine)
        self._session_factory = sessionmaker(self._engine, expire_on_commit=False, future=True)
        self._state_key = state_key

    def load(self, user_token: str) -> Optional[Dict[str, Any]]:
        """Return the saved state, or ``None`` if nothing usable is stored."""
        if not user_token:
            return None
        with self._session_factory() as session:
            row = session.execute(
                select(FormStateModel).where(
                    FormStateModel.user_token == user_token,
                    FormStateModel.state_key == self._state_key,
                )
            ).scalar_one_or_none()
            if row is None:
                return None
            try:
                state = json.loads(row.state_json)
            except ValueError:
                logger.warning("Discarding unreadable form state for %s", user_token)
                return None
        if not isinstance(state, dict):
            logger.warning("Discarding form state of type %s for %s", type(state).__name__, user_token)
            return None
        return state

    def save(self, user_token: str, state: Dict[str, Any]) -> None:
        if not user_token:
            return
        payload = json.dumps(state)
        with self._session_factory() as session:
            row = session.get(FormStateModel, (user_token, self._state_key))
            if row is None:
                session.add(
                    FormStateModel(user_token=user_token, state_key=self._state_key, state_json=payload)
                )
            else:
                row.state_json = payload
            session.commit()
        logger.debug("Saved form state for %s", user_token)

    def clear(self, user_token: str) -> None:
        if not user_token:
            return
        with self._session_factory() as session:
            session.execute(
                FormStateModel.__table__.delete().where(
                    FormStateModel.user_token == user_token,
                    FormStateModel.state_key == self._state_key,
                )
            )
            session.commit()


def create_store_from_env(url: str | None) -> FormStateStore:
    return FormStateStore(url or "sqlite:///form_state.sqlite3")
