"""
Persistence of TournamentState.

The whole state is one JSON document on the Tournament row. Each save
replaces it inside a single transaction, so a write is either fully
applied or not at all.
"""

import logging
from datetime import datetime
from typing import List, Tuple

from sqlmodel import Session, select

from gallera.models.entities import TournamentRules
from gallera.models.tournament import Tournament
from gallera.models.tournament_state import TournamentState

logger = logging.getLogger(__name__)


class TournamentNotFoundError(Exception):
    pass


def _dump(state: TournamentState) -> dict:
    return state.model_dump(mode="json")


def create_tournament(session: Session, rules: TournamentRules) -> Tuple[Tournament, TournamentState]:
    state = TournamentState(rules=rules)
    record = Tournament(name=rules.name, state_json=_dump(state))
    session.add(record)
    session.commit()
    session.refresh(record)
    logger.info("Tournament %d created: %s", record.id, record.name)
    return record, state


def list_tournaments(session: Session) -> List[Tournament]:
    return list(session.exec(select(Tournament).order_by(Tournament.id)).all())


def load_state(session: Session, tournament_id: int) -> Tuple[Tournament, TournamentState]:
    record = session.get(Tournament, tournament_id)
    if not record:
        raise TournamentNotFoundError(f"Tournament {tournament_id} not found")
    return record, TournamentState.model_validate(record.state_json)


def save_state(session: Session, record: Tournament, state: TournamentState) -> Tournament:
    record.state_json = _dump(state)
    record.name = state.rules.name
    record.updated_at = datetime.utcnow()
    try:
        session.add(record)
        session.commit()
    except Exception:
        session.rollback()
        raise
    session.refresh(record)
    return record


def delete_tournament(session: Session, tournament_id: int) -> None:
    record = session.get(Tournament, tournament_id)
    if not record:
        raise TournamentNotFoundError(f"Tournament {tournament_id} not found")
    session.delete(record)
    session.commit()
    logger.info("Tournament %d deleted", tournament_id)
