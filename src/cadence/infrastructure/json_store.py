"""
JSON-file card store.

Keeps every card record and the current study session in one file:

    {"version": 1, "cards": {"<id>": {...}}, "session": {...} | null}

Writes go to a temp file that replaces the old one, so a crash never leaves
a half-written store. There is no locking; callers serialize rating events.
"""

import json
import logging
import os
import tempfile
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from cadence.domain.constants import DEFAULT_TIMEZONE
from cadence.domain.errors import StoreError
from cadence.domain.models import (
    CardContent,
    CardLifecycle,
    CardState,
    LearningQueue,
    Rating,
    ReviewRecord,
    StudySession,
)
from cadence.domain.ports import CardRepository
from cadence.domain.settings import DEFAULT_SETTINGS, SchedulerSettings

logger = logging.getLogger(__name__)

STORE_VERSION = 1


# ---------------------------------------------------------------------------
# Record codec
# ---------------------------------------------------------------------------


def card_to_record(card: CardState) -> dict[str, Any]:
    record: dict[str, Any] = {
        "state": card.state.value,
        "interval": card.interval,
        "ease": card.ease,
        "due": card.due,
        "last_reviewed": card.last_reviewed,
        "repetitions": card.repetitions,
        "lapses": card.lapses,
        "learning_step": card.learning_step,
        "is_leech": card.is_leech,
        "is_suspended": card.is_suspended,
        "is_buried": card.is_buried,
    }
    if card.note_id is not None:
        record["note_id"] = card.note_id
    if card.content is not None:
        record["content"] = {"front": card.content.front, "back": card.content.back}
    return record


def card_from_record(card_id: str, record: dict[str, Any]) -> CardState:
    if not isinstance(record, dict):
        raise StoreError(f"Malformed record for card {card_id}: expected an object")
    try:
        content = record.get("content")
        return CardState(
            id=card_id,
            state=CardLifecycle(record.get("state", "new")),
            interval=record.get("interval", 0),
            ease=float(record.get("ease", DEFAULT_SETTINGS.starting_ease)),
            due=int(record.get("due", 0)),
            last_reviewed=int(record.get("last_reviewed", 0)),
            repetitions=int(record.get("repetitions", 0)),
            lapses=int(record.get("lapses", 0)),
            learning_step=int(record.get("learning_step", 0)),
            is_leech=bool(record.get("is_leech", False)),
            is_suspended=bool(record.get("is_suspended", False)),
            is_buried=bool(record.get("is_buried", False)),
            note_id=record.get("note_id"),
            content=CardContent(content["front"], content["back"]) if content else None,
        )
    except (KeyError, TypeError, ValueError) as e:
        raise StoreError(f"Malformed record for card {card_id}: {e}") from e


def session_to_record(session: StudySession) -> dict[str, Any]:
    return {
        "new_cards_studied": session.new_cards_studied,
        "reviews_completed": session.reviews_completed,
        "learning_queue": session.learning_queue.as_list(),
        "buried_cards": sorted(session.buried_cards),
        "review_history": [
            {
                "card_id": r.card_id,
                "previous_state": card_to_record(r.previous_state),
                "rating": int(r.rating),
                "timestamp": r.timestamp,
            }
            for r in session.review_history
        ],
        "day_start": session.day_start,
        "timezone": session.timezone,
    }


def session_from_record(record: dict[str, Any]) -> StudySession:
    if not isinstance(record, dict):
        raise StoreError("Malformed session record: expected an object")
    try:
        history = tuple(
            ReviewRecord(
                card_id=r["card_id"],
                previous_state=card_from_record(r["card_id"], r["previous_state"]),
                rating=Rating(r["rating"]),
                timestamp=int(r["timestamp"]),
            )
            for r in record.get("review_history", [])
        )
        return StudySession(
            new_cards_studied=int(record.get("new_cards_studied", 0)),
            reviews_completed=int(record.get("reviews_completed", 0)),
            learning_queue=LearningQueue(record.get("learning_queue", [])),
            buried_cards=frozenset(record.get("buried_cards", [])),
            review_history=history,
            day_start=record.get("day_start"),
            timezone=record.get("timezone") or DEFAULT_TIMEZONE,
        )
    except (KeyError, TypeError, ValueError) as e:
        raise StoreError(f"Malformed session record: {e}") from e


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class JsonCardRepository(CardRepository):
    """CardRepository backed by a single JSON file."""

    def __init__(self, path: Path, settings: SchedulerSettings | None = None):
        self.path = Path(path)
        self._starting_ease = (settings or DEFAULT_SETTINGS).starting_ease

    def _read(self) -> dict[str, Any]:
        if not self.path.exists():
            return {"version": STORE_VERSION, "cards": {}, "session": None}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise StoreError(f"Store {self.path} is not valid JSON: {e}") from e
        except OSError as e:
            raise StoreError(f"Could not read store {self.path}: {e}") from e

        if not isinstance(data, dict) or not isinstance(data.get("cards", {}), dict):
            raise StoreError(f"Store {self.path} has an unexpected layout")
        data.setdefault("cards", {})
        data.setdefault("session", None)
        return data

    def _write(self, data: dict[str, Any]) -> None:
        data["version"] = STORE_VERSION
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp = tempfile.mkstemp(dir=self.path.parent, prefix=".cadence-", suffix=".json")
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
            os.replace(tmp, self.path)
        except OSError as e:
            raise StoreError(f"Could not write store {self.path}: {e}") from e

    def load_cards(self, card_ids: Iterable[str], now: int) -> dict[str, CardState]:
        stored = self._read()["cards"]
        cards: dict[str, CardState] = {}
        for card_id in card_ids:
            if card_id in stored:
                cards[card_id] = card_from_record(card_id, stored[card_id])
            else:
                logger.debug(f"Card {card_id} not in store, initialising as new")
                cards[card_id] = CardState(id=card_id, ease=self._starting_ease, due=now)
        return cards

    def all_cards(self) -> dict[str, CardState]:
        return {cid: card_from_record(cid, rec) for cid, rec in self._read()["cards"].items()}

    def upsert_card(self, card: CardState) -> None:
        data = self._read()
        data["cards"][card.id] = card_to_record(card)
        self._write(data)

    def upsert_cards(self, cards: Iterable[CardState]) -> None:
        data = self._read()
        for card in cards:
            data["cards"][card.id] = card_to_record(card)
        self._write(data)

    def load_session(self) -> StudySession | None:
        record = self._read()["session"]
        return session_from_record(record) if record else None

    def save_session(self, session: StudySession) -> None:
        data = self._read()
        data["session"] = session_to_record(session)
        self._write(data)
