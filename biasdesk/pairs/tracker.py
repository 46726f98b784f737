"""
Pair bias tracking.

Reducer and predicates for the trading pairs collection.

A pair is valid only while its bias was refreshed today (local calendar
day, not a rolling 24 hours) and it has not been switched off by hand.
Daily bias changes archive the previous biases into a short,
most-recent-first history.
"""

import logging
from dataclasses import dataclass, replace
from datetime import datetime, tzinfo
from enum import Enum
from typing import Any, Iterable, List, Optional

from biasdesk.core.models import Bias, HistoryEntry, Pair, Timeframe, coerce_enum
from biasdesk.core.utils import next_entity_id

logger = logging.getLogger(__name__)

HISTORY_LIMIT = 7


class PairField(str, Enum):
    """Editable pair fields."""
    NAME = "name"
    WEEKLY_BIAS = "weeklyBias"
    DAILY_BIAS = "dailyBias"
    IS_EDITING = "isEditing"
    NOTES = "notes"


@dataclass(frozen=True)
class CreatePair:
    now: datetime


@dataclass(frozen=True)
class CommitName:
    pair_id: int
    name: str


@dataclass(frozen=True)
class SetBias:
    pair_id: int
    timeframe: Timeframe
    value: Bias
    now: datetime


@dataclass(frozen=True)
class UpdatePair:
    pair_id: int
    field: PairField
    value: Any
    now: datetime


@dataclass(frozen=True)
class ToggleInvalidation:
    pair_id: int


@dataclass(frozen=True)
class DeletePair:
    pair_id: int


@dataclass(frozen=True)
class PurgeExpired:
    """Delete the listed pairs if they are still unnamed drafts."""
    pair_ids: tuple


def new_pair(pair_id: int, now: datetime) -> Pair:
    """Build an unnamed pair awaiting its name."""
    return Pair(
        id=pair_id,
        name="",
        weekly_bias=Bias.BEARISH,
        daily_bias=Bias.BEARISH,
        last_updated=now,
        history=[],
        manually_invalidated=False,
        is_editing=True,
    )


def seed_pairs() -> List[Pair]:
    """Default collection: no pairs."""
    return []


def is_pending_draft(pair: Pair) -> bool:
    """Created but never named; such pairs expire."""
    return pair.is_editing and pair.name == ""


def is_same_day(when: Optional[datetime], now: datetime, tz: Optional[tzinfo] = None) -> bool:
    """
    Compare local calendar days.

    23:59 and 00:01 the next day are different days.
    """
    if when is None:
        return False
    return when.astimezone(tz).date() == now.astimezone(tz).date()


def is_valid(pair: Pair, now: datetime, tz: Optional[tzinfo] = None) -> bool:
    """Bias refreshed today and not manually invalidated."""
    return is_same_day(pair.last_updated, now, tz) and not pair.manually_invalidated


def validity_reason(pair: Pair, now: datetime, tz: Optional[tzinfo] = None) -> Optional[str]:
    """Why a pair is invalid, or None when it is valid."""
    if pair.manually_invalidated:
        return "Manually deactivated"
    if not is_same_day(pair.last_updated, now, tz):
        return "Needs daily update"
    return None


def parse_field(field: Any) -> Optional[PairField]:
    """Resolve a field tag from its enum, value or name."""
    if isinstance(field, PairField):
        return field
    if isinstance(field, str):
        for member in PairField:
            if field == member.value or field.upper() == member.name:
                return member
    return None


def set_bias(pair: Pair, timeframe: Timeframe, value: Bias, now: datetime,
             history_limit: int = HISTORY_LIMIT) -> Pair:
    """
    Set a bias and stamp the pair as updated.

    A daily change pushes the previous biases onto the front of the
    history (dropping the oldest beyond history_limit) and clears any
    manual invalidation. A weekly change touches only the field.
    """
    if timeframe == Timeframe.DAILY:
        entry = HistoryEntry(
            date=pair.last_updated,
            daily_bias=pair.daily_bias,
            weekly_bias=pair.weekly_bias,
        )
        return replace(
            pair,
            daily_bias=value,
            last_updated=now,
            history=([entry] + pair.history)[:history_limit],
            manually_invalidated=False,
        )

    return replace(pair, weekly_bias=value, last_updated=now)


def commit_name(pair: Pair, name: str) -> Pair:
    """Store the name; a non-blank name also closes the editor."""
    name = "" if name is None else str(name)
    if name.strip():
        return replace(pair, name=name.strip(), is_editing=False)
    return replace(pair, name=name)


def _update_field(pair: Pair, command: UpdatePair, history_limit: int) -> Optional[Pair]:
    field = parse_field(command.field)

    if field is None:
        logger.warning(f"Ignoring update to unknown pair field {command.field!r}")
        return None

    elif field in (PairField.WEEKLY_BIAS, PairField.DAILY_BIAS):
        bias = coerce_enum(Bias, command.value, None)
        if bias is None:
            logger.warning(f"Ignoring bias value {command.value!r}")
            return None
        timeframe = Timeframe.DAILY if field == PairField.DAILY_BIAS else Timeframe.WEEKLY
        return set_bias(pair, timeframe, bias, command.now, history_limit)

    elif field == PairField.NAME:
        return replace(pair, name="" if command.value is None else str(command.value))

    elif field == PairField.IS_EDITING:
        if command.value:
            return replace(pair, is_editing=True)
        return commit_name(pair, pair.name)

    elif field == PairField.NOTES:
        return replace(pair, notes="" if command.value is None else str(command.value))

    raise AssertionError(f"Unhandled pair field: {field}")


def _replace_pair(pairs: List[Pair], pair_id: int, edit) -> List[Pair]:
    """Swap in edit(pair) for the matching id; same list if nothing changed."""
    for index, pair in enumerate(pairs):
        if pair.id != pair_id:
            continue
        edited = edit(pair)
        if edited is None:
            return pairs
        updated = list(pairs)
        updated[index] = edited
        return updated

    logger.debug(f"Command for unknown pair {pair_id} ignored")
    return pairs


def purge_expired(pairs: List[Pair], due_ids: Iterable[int]) -> List[Pair]:
    """Drop due pairs that are still unnamed drafts."""
    due = set(due_ids)
    remaining = [p for p in pairs if not (p.id in due and is_pending_draft(p))]
    if len(remaining) == len(pairs):
        return pairs
    logger.info(f"Purged {len(pairs) - len(remaining)} unnamed pair(s)")
    return remaining


def reduce_pairs(pairs: List[Pair], command, history_limit: int = HISTORY_LIMIT) -> List[Pair]:
    """
    Apply one command to the pair list.

    Returns the same list object when the command changes nothing.
    """
    if isinstance(command, CreatePair):
        pair_id = next_entity_id((p.id for p in pairs), command.now)
        logger.info(f"Created pair {pair_id}")
        return pairs + [new_pair(pair_id, command.now)]

    elif isinstance(command, CommitName):
        return _replace_pair(pairs, command.pair_id, lambda p: commit_name(p, command.name))

    elif isinstance(command, SetBias):
        return _replace_pair(
            pairs,
            command.pair_id,
            lambda p: set_bias(p, command.timeframe, command.value, command.now, history_limit),
        )

    elif isinstance(command, UpdatePair):
        return _replace_pair(
            pairs, command.pair_id, lambda p: _update_field(p, command, history_limit)
        )

    elif isinstance(command, ToggleInvalidation):
        return _replace_pair(
            pairs,
            command.pair_id,
            lambda p: replace(p, manually_invalidated=not p.manually_invalidated),
        )

    elif isinstance(command, DeletePair):
        remaining = [p for p in pairs if p.id != command.pair_id]
        if len(remaining) == len(pairs):
            return pairs
        logger.info(f"Deleted pair {command.pair_id}")
        return remaining

    elif isinstance(command, PurgeExpired):
        return purge_expired(pairs, command.pair_ids)

    logger.warning(f"Unknown pair command: {command!r}")
    return pairs
