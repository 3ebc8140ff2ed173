"""Tests for the lifecycle state machine — pure transition table.

Covers:
- The three legal transitions
- Exhaustive rejection of every other (state, event) pair
- Bloomed is terminal and only reachable through Expired
"""

import itertools

import pytest

from garden.core.enums import EntityState, LifecycleEvent
from garden.core.transitions import TRANSITIONS, Rejected, is_terminal, transition

VALID = {
    (EntityState.DORMANT, LifecycleEvent.PLACE_REQUESTED): EntityState.GROWING,
    (EntityState.GROWING, LifecycleEvent.TIMER_FIRED): EntityState.EXPIRED,
    (EntityState.EXPIRED, LifecycleEvent.TAP_WHILE_EXPIRED): EntityState.BLOOMED,
}

ALL_PAIRS = list(itertools.product(EntityState, LifecycleEvent))


class TestLegalTransitions:

    @pytest.mark.parametrize("pair,expected", list(VALID.items()))
    def test_valid_pair_advances(self, pair, expected):
        state, event = pair
        assert transition(state, event) == expected

    def test_table_matches_lifecycle(self):
        assert dict(TRANSITIONS) == VALID

    def test_each_step_moves_forward_by_one(self):
        for (state, _event), nxt in VALID.items():
            assert nxt == state + 1


class TestRejections:

    @pytest.mark.parametrize("state,event", [p for p in ALL_PAIRS if p not in VALID])
    def test_invalid_pair_rejected(self, state, event):
        result = transition(state, event)
        assert isinstance(result, Rejected)
        assert result.state == state
        assert result.event == event

    def test_rejection_count(self):
        rejected = [p for p in ALL_PAIRS if isinstance(transition(*p), Rejected)]
        assert len(rejected) == len(ALL_PAIRS) - 3

    def test_rejected_message_names_both(self):
        msg = str(transition(EntityState.DORMANT, LifecycleEvent.TAP_WHILE_EXPIRED))
        assert "TAP_WHILE_EXPIRED" in msg
        assert "DORMANT" in msg


class TestReachability:

    def test_bloomed_is_terminal(self):
        assert is_terminal(EntityState.BLOOMED)
        for state in (EntityState.DORMANT, EntityState.GROWING, EntityState.EXPIRED):
            assert not is_terminal(state)

    def test_bloomed_only_from_expired(self):
        sources = [s for (s, _e), nxt in TRANSITIONS.items() if nxt == EntityState.BLOOMED]
        assert sources == [EntityState.EXPIRED]

    def test_only_path_to_bloomed(self):
        """Walking every event sequence from Dormant, Bloomed needs exactly place → timer → tap."""
        paths = []
        for seq in itertools.product(LifecycleEvent, repeat=3):
            state = EntityState.DORMANT
            for event in seq:
                nxt = transition(state, event)
                if isinstance(nxt, Rejected):
                    break
                state = nxt
            else:
                if state == EntityState.BLOOMED:
                    paths.append(seq)
        assert paths == [(
            LifecycleEvent.PLACE_REQUESTED,
            LifecycleEvent.TIMER_FIRED,
            LifecycleEvent.TAP_WHILE_EXPIRED,
        )]
