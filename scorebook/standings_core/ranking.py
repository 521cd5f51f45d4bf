"""
Ordering of standings and movement against a previous snapshot.

Standings are ordered by:

1. points, highest first
2. wins, highest first
3. games played, fewest first (same points from fewer games ranks higher)
4. display name, alphabetical

Positions are 1-based and never shared. Movement compares each entity's
position with the one it held in a caller-supplied snapshot, typically last
week's leaderboard.
"""

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, Union

from scorebook.standings_core.formula import Number
from scorebook.standings_core.standings import (
    Movement,
    MovementDirection,
    StandingEntry,
)
from scorebook.standings_core.structure import EntityId


@dataclass(frozen=True)
class SnapshotEntry:
    """An entity's position in a stored leaderboard."""

    entity_id: EntityId
    position: int
    points: Number = 0


@dataclass(frozen=True)
class Snapshot:
    """An immutable prior leaderboard, used only for movement."""

    entries: Tuple[SnapshotEntry, ...] = ()
    taken_at: Optional[datetime] = None

    def positions(self) -> Dict[EntityId, int]:
        return _positions_by_entity(self.entries)


PreviousStandings = Union[Snapshot, Sequence[Union[SnapshotEntry, StandingEntry]]]


def standing_sort_key(entry: StandingEntry):
    """Sort key implementing the leaderboard order."""
    # Entity id is a last resort for entities sharing a display name
    return (
        -entry.points,
        -entry.wins,
        entry.games_played,
        entry.display_name,
        str(entry.entity_id),
    )


def _positions_by_entity(entries) -> Dict[EntityId, int]:
    positions = {}
    for entry in entries:
        if entry.position is None:
            continue
        # First occurrence wins when an entity appears twice
        positions.setdefault(entry.entity_id, entry.position)
    return positions


def calculate_movement(
    previous_position: Optional[int], current_position: int
) -> Movement:
    """Movement from a previous position to the current one.

    New entrants (no previous position) get no movement.
    """
    if previous_position is None:
        return Movement(MovementDirection.NONE, 0)

    change = previous_position - current_position
    if change > 0:
        return Movement(MovementDirection.UP, change)
    elif change < 0:
        return Movement(MovementDirection.DOWN, change)
    return Movement(MovementDirection.NONE, 0)


def rank(
    entries: Iterable[StandingEntry],
    previous_snapshot: Optional[PreviousStandings] = None,
) -> List[StandingEntry]:
    """
    Order standing entries and set their position and movement.

    Args:
        entries: Aggregated standing entries, in any order
        previous_snapshot: Prior leaderboard to compute movement against

    Returns:
        New entries in leaderboard order with position and movement set
    """
    if previous_snapshot is None:
        previous = {}
    elif isinstance(previous_snapshot, Snapshot):
        previous = previous_snapshot.positions()
    else:
        previous = _positions_by_entity(previous_snapshot)

    ranked = []
    for index, entry in enumerate(sorted(entries, key=standing_sort_key)):
        position = index + 1
        movement = calculate_movement(previous.get(entry.entity_id), position)
        ranked.append(replace(entry, position=position, movement=movement))
    return ranked


def capture_snapshot(
    standings: Iterable[StandingEntry], taken_at: Optional[datetime] = None
) -> Snapshot:
    """Record ranked standings so they can be compared against later.

    Entries without a position are ranked first.
    """
    standings = list(standings)
    if any(entry.position is None for entry in standings):
        standings = rank(standings)
    return Snapshot(
        entries=tuple(
            SnapshotEntry(entry.entity_id, entry.position, entry.points)
            for entry in standings
        ),
        taken_at=taken_at,
    )
