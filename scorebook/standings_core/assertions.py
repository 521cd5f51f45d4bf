"""
Fluent assertion interface for testing leaderboards.

    assert_standings(standings).entity("Alice").assert_().points(15).wins(3).position(1)

Entities are selected by display name. Failures raise the built-in
AssertionError so any test framework reports them.
"""

from dataclasses import dataclass
from typing import Iterable, List, Optional, Union

from scorebook.standings_core.standings import MovementDirection, StandingEntry


@dataclass
class StandingsAssertion:
    """Fluent interface for asserting a computed leaderboard."""

    standings: List[StandingEntry]
    entry: Optional[StandingEntry] = None

    def entity(self, name: str) -> "EntityAssertion":
        """Select an entity (player or team) by display name."""
        matches = [e for e in self.standings if e.display_name == name]
        if not matches:
            raise AssertionError(f"'{name}' not found in standings")
        if len(matches) > 1:
            raise AssertionError(f"'{name}' appears {len(matches)} times in standings")
        return EntityAssertion(self.standings, matches[0])

    def player(self, name: str) -> "EntityAssertion":
        return self.entity(name)

    def team(self, name: str) -> "EntityAssertion":
        return self.entity(name)

    def order(self, *names: str) -> "StandingsAssertion":
        """Assert the leaderboard starts with these names, in this order."""
        actual = [e.display_name for e in self.standings[: len(names)]]
        if actual != list(names):
            raise AssertionError(f"Expected order {list(names)}, got {actual}")
        return self

    def size(self, expected: int) -> "StandingsAssertion":
        if len(self.standings) != expected:
            raise AssertionError(
                f"Expected {expected} standing entries, got {len(self.standings)}"
            )
        return self


class EntityAssertion(StandingsAssertion):
    """Assertions for a single entity."""

    def assert_(self) -> "EntityResultAssertion":
        """Start a chain of assertions for this entity."""
        return EntityResultAssertion(self.standings, self.entry)


class EntityResultAssertion(StandingsAssertion):
    """Fluent interface for asserting one entity's standing."""

    def _check(self, label: str, actual, expected):
        if actual != expected:
            raise AssertionError(
                f"{self.entry.display_name} expected {expected} {label}, got {actual}"
            )
        return self

    def games_played(self, expected: int) -> "EntityResultAssertion":
        return self._check("games played", self.entry.games_played, expected)

    def wins(self, expected: int) -> "EntityResultAssertion":
        return self._check("wins", self.entry.wins, expected)

    def losses(self, expected: int) -> "EntityResultAssertion":
        return self._check("losses", self.entry.losses, expected)

    def draws(self, expected: int) -> "EntityResultAssertion":
        return self._check("draws", self.entry.draws, expected)

    def points(self, expected: Union[int, float]) -> "EntityResultAssertion":
        # Allow small floating point differences
        if abs(self.entry.points - expected) > 0.0001:
            raise AssertionError(
                f"{self.entry.display_name} expected {expected} points, got {self.entry.points}"
            )
        return self

    def position(self, expected: int) -> "EntityResultAssertion":
        return self._check("position", self.entry.position, expected)

    def special_events(
        self, expected: int, rule_id: Optional[str] = None
    ) -> "EntityResultAssertion":
        """Assert the number of special events, optionally for a single rule."""
        events = [
            e for e in self.entry.special_events if rule_id is None or e.rule_id == rule_id
        ]
        label = "special events" if rule_id is None else f"'{rule_id}' events"
        return self._check(label, len(events), expected)

    def moved(self, direction: str, positions: int) -> "EntityResultAssertion":
        """Assert movement, e.g. ``moved("up", 2)``."""
        movement = self.entry.movement
        if movement is None:
            raise AssertionError(f"{self.entry.display_name} has no movement computed")
        actual = (movement.direction, movement.positions)
        expected = (MovementDirection(direction), positions)
        if actual != expected:
            raise AssertionError(
                f"{self.entry.display_name} expected movement {direction} {positions}, "
                f"got {movement.direction.value} {movement.positions}"
            )
        return self

    def streak(self, current: int, longest: Optional[int] = None) -> "EntityResultAssertion":
        self._check("current win streak", self.entry.counters.current_win_streak, current)
        if longest is not None:
            self._check("longest win streak", self.entry.counters.longest_win_streak, longest)
        return self


def assert_standings(standings: Iterable[StandingEntry]) -> StandingsAssertion:
    """Start a fluent assertion chain on computed standings."""
    return StandingsAssertion(list(standings))
