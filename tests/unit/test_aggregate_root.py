"""Tests for the AggregateRoot base: invariants, versions, events, rollback."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

import pytest

from domain_kernel.core.errors import DomainRuleViolation
from domain_kernel.domain.aggregate import AggregateRoot, Invariant
from domain_kernel.domain.events import DomainEvent
from domain_kernel.domain.identity import IdentityValue


@dataclass(frozen=True)
class MemberJoined(DomainEvent):
    name: str = ""


class Team(AggregateRoot):
    """Roster with a capacity; members are unique by name."""

    def __init__(
        self, team_id: IdentityValue, capacity: int, *, version: int | None = None
    ) -> None:
        super().__init__(team_id, version=version)
        self._capacity = capacity
        self._members: list[str] = []

    @classmethod
    def create(cls, capacity: int) -> Team:
        return cls(IdentityValue.create(), capacity)._finish_construction()

    @property
    def members(self) -> tuple[str, ...]:
        return tuple(self._members)

    def join(self, name: str) -> None:
        with self._mutation():
            if name in self._members:
                raise DomainRuleViolation("team.unique_member", name, self._id)
            self._members.append(name)
            self._record(MemberJoined(name=name))

    def join_many(self, names: list[str]) -> None:
        with self._mutation():
            for name in names:
                self.join(name)

    def _invariants(self) -> Iterable[Invariant]:
        yield "team.capacity_non_negative", lambda: self._capacity >= 0
        yield "team.within_capacity", lambda: len(self._members) <= self._capacity


class TestConstruction:
    def test_new_aggregate_starts_at_version_zero(self):
        team = Team.create(3)
        assert team.version == 0
        assert team.persisted_version is None
        assert team.is_new
        assert team.has_unsaved_changes

    def test_construction_fails_when_invariants_fail(self):
        with pytest.raises(DomainRuleViolation) as exc_info:
            Team.create(-1)
        assert exc_info.value.rule == "team.capacity_non_negative"

    @pytest.mark.parametrize("version", [-1, 1.0, True, "1"])
    def test_rejects_bad_version(self, version):
        with pytest.raises(DomainRuleViolation):
            Team(IdentityValue.create(), 3, version=version)

    def test_reconstructed_version_counts_as_persisted(self):
        team = Team(IdentityValue.create("t"), 3, version=7)
        assert team.version == 7
        assert team.persisted_version == 7
        assert not team.has_unsaved_changes

    def test_reconstructed_at_version_zero_is_not_new(self):
        team = Team(IdentityValue.create("t"), 3, version=0)
        assert not team.is_new
        assert not team.has_unsaved_changes


class TestMutation:
    def test_success_bumps_version_once(self):
        team = Team.create(3)
        team.join("ann")
        assert team.version == 1
        assert team.has_unsaved_changes

    def test_invariant_failure_rolls_back(self):
        team = Team.create(1)
        team.join("ann")
        with pytest.raises(DomainRuleViolation) as exc_info:
            team.join("bob")
        assert exc_info.value.rule == "team.within_capacity"
        assert team.members == ("ann",)
        assert team.version == 1
        assert len(team.pending_events) == 1

    def test_explicit_rule_failure_rolls_back(self):
        team = Team.create(3)
        team.join("ann")
        with pytest.raises(DomainRuleViolation):
            team.join("ann")
        assert team.members == ("ann",)
        assert team.version == 1

    def test_nested_mutation_is_one_unit(self):
        team = Team.create(5)
        team.join_many(["a", "b", "c"])
        assert team.version == 1
        assert {e.aggregate_version for e in team.pending_events} == {1}

    def test_nested_mutation_rolls_back_as_a_whole(self):
        team = Team.create(2)
        with pytest.raises(DomainRuleViolation):
            team.join_many(["a", "b", "c"])
        assert team.members == ()
        assert team.version == 0
        assert team.pending_events == ()

    def test_mark_persisted(self):
        team = Team.create(3)
        team.join("ann")
        team.mark_persisted()
        assert team.persisted_version == 1
        assert not team.has_unsaved_changes

    def test_repr(self):
        team = Team(IdentityValue.create("t-1"), 3)
        assert repr(team) == "Team(id='t-1', version=0)"


class TestEvents:
    def test_events_are_stamped_with_aggregate(self):
        team = Team.create(3)
        team.join("ann")
        team.join("bob")
        events = team.pending_events
        assert [e.name for e in events] == ["ann", "bob"]
        assert [e.aggregate_version for e in events] == [1, 2]
        assert all(e.aggregate_id == team.id.token for e in events)

    def test_pending_events_is_a_copy(self):
        team = Team.create(3)
        team.join("ann")
        assert isinstance(team.pending_events, tuple)
        assert len(team.pending_events) == 1

    def test_pull_events_drains(self):
        team = Team.create(3)
        team.join("ann")
        drained = team.pull_events()
        assert len(drained) == 1
        assert team.pending_events == ()
        drained.clear()
        assert team.pull_events() == []

    def test_pull_events_takes_oldest_first(self):
        team = Team.create(3)
        team.join_many(["ann", "bob", "cy"])
        assert [e.name for e in team.pull_events(1)] == ["ann"]
        assert [e.name for e in team.pending_events] == ["bob", "cy"]
        assert [e.name for e in team.pull_events(5)] == ["bob", "cy"]
        assert team.pull_events(1) == []

    def test_record_outside_mutation_is_refused(self):
        team = Team.create(3)
        with pytest.raises(RuntimeError):
            team._record(MemberJoined(name="x"))


class TestEquality:
    def test_stale_copy_equals_current(self):
        team = Team(IdentityValue.create("t-1"), 3)
        stale = Team(IdentityValue.create("t-1"), 3)
        team.join("ann")
        assert team == stale
