"""Unit tests for workflow states (treewright.workflow.state).

Tests cover:
- Every allowed transition succeeds
- Illegal transitions raise with both states attached
- Terminal states have no exits
"""

from __future__ import annotations

import pytest

from treewright.workflow import ALLOWED_TRANSITIONS, IllegalTransitionError, WorkflowState, transition

S = WorkflowState


class TestTransitions:
    @pytest.mark.unit
    @pytest.mark.parametrize(
        "current,to",
        [(current, to) for current, targets in ALLOWED_TRANSITIONS.items() for to in targets],
    )
    def test_allowed(self, current, to):
        assert transition(current, to) is to

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "current,to",
        [
            (S.IDLE, S.COMMIT),
            (S.IDLE, S.ERRORED),
            (S.DRY_RUN, S.DONE),
            (S.COMMIT, S.DISCARDED),
            (S.DONE, S.IDLE),
            (S.ERRORED, S.DRY_RUN),
        ],
    )
    def test_illegal(self, current, to):
        with pytest.raises(IllegalTransitionError) as exc_info:
            transition(current, to)
        assert exc_info.value.current is current
        assert exc_info.value.to is to
        assert f"{current.value} -> {to.value}" in str(exc_info.value)

    @pytest.mark.unit
    def test_terminal_states(self):
        assert ALLOWED_TRANSITIONS[S.DONE] == set()
        assert ALLOWED_TRANSITIONS[S.ERRORED] == set()

    @pytest.mark.unit
    def test_every_state_has_an_entry(self):
        assert set(ALLOWED_TRANSITIONS) == set(WorkflowState)
