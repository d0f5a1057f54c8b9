"""
Proposal Lifecycle Test Suite

Coverage:
  - Proposal creation: validation, index sequencing, derived addresses
  - Tally evaluation: quorum and approval boundaries in integer arithmetic
  - State machine: valid / invalid transitions, history
  - Finalize, queue, execute and cancel
"""

import os
import sys

import pytest
from hypothesis import given, settings, strategies as st

# ── Path setup ────────────────────────────────────────────────────────
ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from daogov.crypto.address import PublicKey
from daogov.exceptions import ValidationError
from daogov.governance.actions import transfer_sol
from daogov.governance.dao import UnauthorizedError, create_dao
from daogov.governance.proposals import (
    ProposalLifecycleError,
    ProposalStatus,
    ProposalThresholdError,
    calculate_proposal_result,
    can_execute_proposal,
    cancel_proposal,
    create_proposal,
    execute_proposal,
    finalize_proposal,
    queue_proposal,
    validate_proposal_input,
)
from daogov.programs.program import Discriminator, discriminator_bytes, get_proposal_address

NOW = 1_700_000_000
DAY = 86400


def key(n: int) -> PublicKey:
    return PublicKey(bytes([n]) * 32)


AUTHORITY = key(1)
TOKEN = key(2)
PROPOSER = key(3)
STRANGER = key(4)


def make_dao(**overrides):
    config = {
        "voting_period": "5 days",
        "quorum": 10,
        "approval_threshold": 50,
        "execution_delay": "1 day",
    }
    config.update(overrides)
    dao, _ = create_dao(AUTHORITY, "TestDAO", TOKEN, config, NOW)
    dao.total_voting_power = 1000
    return dao


def make_proposal(dao=None, **kwargs):
    dao = dao or make_dao()
    proposal, _ = create_proposal(
        dao, PROPOSER, "Fund grants", "Send 10 SOL", [transfer_sol(key(9), 10)], NOW, **kwargs,
    )
    return proposal


def with_votes(proposal, for_votes=0, against=0, abstain=0):
    proposal.for_votes = for_votes
    proposal.against_votes = against
    proposal.abstain_votes = abstain
    return proposal


# ══════════════════════════════════════════════════════════════════════
#  CREATION
# ══════════════════════════════════════════════════════════════════════

class TestCreateProposal:

    def test_window_and_initial_state(self):
        dao = make_dao()
        proposal, ix = create_proposal(dao, PROPOSER, "T", "D", [transfer_sol(key(9), 1)], NOW)
        assert proposal.status == ProposalStatus.ACTIVE
        assert proposal.start_time == NOW
        assert proposal.end_time == NOW + 5 * DAY
        assert proposal.total_votes == 0
        assert proposal.execution_time is None
        assert ix.data[:8] == discriminator_bytes(Discriminator.CREATE_PROPOSAL)

    def test_indices_are_sequential(self):
        dao = make_dao()
        first = make_proposal(dao)
        second = make_proposal(dao)
        assert (first.index, second.index) == (0, 1)
        assert dao.proposal_count == 2
        assert second.address == get_proposal_address(dao.address, 1)
        assert first.address != second.address

    def test_actions_count_in_payload(self):
        dao = make_dao()
        actions = [transfer_sol(key(9), 1), transfer_sol(key(10), 2)]
        _, ix = create_proposal(dao, PROPOSER, "T", "D", actions, NOW)
        assert ix.data[-4:] == (2).to_bytes(4, "little")

    @pytest.mark.parametrize("title", ["", "   ", "x" * 101])
    def test_bad_title(self, title):
        with pytest.raises(ValidationError):
            create_proposal(make_dao(), PROPOSER, title, "D", [transfer_sol(key(9), 1)], NOW)

    def test_validate_input_directly(self):
        validate_proposal_input("T", [transfer_sol(key(9), 1)])
        with pytest.raises(ValidationError, match="cannot be empty"):
            validate_proposal_input("", [transfer_sol(key(9), 1)])
        with pytest.raises(ValidationError, match="at most 100"):
            validate_proposal_input("x" * 101, [transfer_sol(key(9), 1)])

    def test_title_at_limit(self):
        proposal, _ = create_proposal(make_dao(), PROPOSER, "x" * 100, "D", [transfer_sol(key(9), 1)], NOW)
        assert len(proposal.title) == 100

    def test_no_actions(self):
        with pytest.raises(ValidationError, match="at least one action"):
            create_proposal(make_dao(), PROPOSER, "T", "D", [], NOW)

    def test_failed_validation_keeps_count(self):
        dao = make_dao()
        with pytest.raises(ValidationError):
            create_proposal(dao, PROPOSER, "", "D", [transfer_sol(key(9), 1)], NOW)
        assert dao.proposal_count == 0

    def test_proposer_threshold(self):
        dao = make_dao(min_proposal_threshold=100)
        with pytest.raises(ProposalThresholdError):
            make_proposal(dao, proposer_power=99)
        assert make_proposal(dao, proposer_power=100).index == 0


# ══════════════════════════════════════════════════════════════════════
#  TALLY
# ══════════════════════════════════════════════════════════════════════

class TestCalculateProposalResult:

    def test_scenario_with_abstain_passes(self):
        p = with_votes(make_proposal(), 700, 200, 100)
        result = calculate_proposal_result(p, 10, 50, 1000)
        assert result.passed
        assert result.reason == "Proposal passed"

    def test_scenario_low_turnout_fails(self):
        p = with_votes(make_proposal(), 5, 0, 0)
        result = calculate_proposal_result(p, 10, 50, 1000)
        assert not result.passed
        assert "Quorum" in result.reason

    def test_passes(self):
        p = with_votes(make_proposal(), 80, 20)
        result = calculate_proposal_result(p, 10, 50, 1000)
        assert result.passed
        assert result.reason == "Proposal passed"

    def test_quorum_not_reached(self):
        p = with_votes(make_proposal(), 50, 0)
        result = calculate_proposal_result(p, 10, 50, 1000)
        assert not result.passed
        assert result.reason == "Quorum not reached"

    def test_approval_not_met(self):
        p = with_votes(make_proposal(), 40, 60)
        result = calculate_proposal_result(p, 10, 50, 1000)
        assert not result.passed
        assert result.reason == "Approval threshold not met"

    def test_quorum_exact_boundary(self):
        assert calculate_proposal_result(with_votes(make_proposal(), 100), 10, 50, 1000).passed
        result = calculate_proposal_result(with_votes(make_proposal(), 99), 10, 50, 1000)
        assert result.reason == "Quorum not reached"

    def test_approval_exact_boundary(self):
        assert calculate_proposal_result(with_votes(make_proposal(), 50, 50), 10, 50, 1000).passed
        result = calculate_proposal_result(with_votes(make_proposal(), 49, 51), 10, 50, 1000)
        assert result.reason == "Approval threshold not met"

    def test_abstain_counts_for_quorum_not_approval(self):
        p = with_votes(make_proposal(), 30, 0, 70)
        result = calculate_proposal_result(p, 10, 50, 1000)
        assert result.reason == "Approval threshold not met"

    def test_zero_power_zero_votes(self):
        # Quorum trivially met, approval 0 >= 0
        assert calculate_proposal_result(make_proposal(), 10, 50, 0).passed

    @settings(deadline=None)
    @given(
        st.integers(0, 10 ** 12), st.integers(0, 10 ** 12), st.integers(0, 10 ** 12),
        st.integers(1, 100), st.integers(1, 100), st.integers(0, 10 ** 12),
    )
    def test_matches_integer_rule(self, f, a, ab, quorum, threshold, power):
        p = with_votes(make_proposal(), f, a, ab)
        total = f + a + ab
        expected = total * 100 >= power * quorum and f * 100 >= total * threshold
        assert calculate_proposal_result(p, quorum, threshold, power).passed == expected


# ══════════════════════════════════════════════════════════════════════
#  STATE MACHINE
# ══════════════════════════════════════════════════════════════════════

class TestTransitions:

    def test_valid_path(self):
        p = make_proposal()
        p.transition_to(ProposalStatus.SUCCEEDED, "passed", NOW)
        p.transition_to(ProposalStatus.QUEUED, "queued", NOW)
        p.transition_to(ProposalStatus.EXECUTED, "done", NOW)
        assert p.is_terminal
        assert [h["to"] for h in p.history] == ["ACTIVE", "SUCCEEDED", "QUEUED", "EXECUTED"]

    @pytest.mark.parametrize("terminal", [
        ProposalStatus.FAILED, ProposalStatus.CANCELLED,
    ])
    def test_terminal_from_active(self, terminal):
        p = make_proposal()
        p.transition_to(terminal)
        assert p.is_terminal
        for target in ProposalStatus:
            with pytest.raises(ProposalLifecycleError):
                p.transition_to(target)

    def test_never_back_to_active(self):
        p = make_proposal()
        p.transition_to(ProposalStatus.SUCCEEDED)
        with pytest.raises(ProposalLifecycleError, match="SUCCEEDED → ACTIVE"):
            p.transition_to(ProposalStatus.ACTIVE)

    def test_queued_cannot_cancel(self):
        p = make_proposal()
        p.transition_to(ProposalStatus.SUCCEEDED)
        p.transition_to(ProposalStatus.QUEUED)
        with pytest.raises(ProposalLifecycleError):
            p.transition_to(ProposalStatus.CANCELLED)

    def test_active_cannot_skip_to_queued(self):
        with pytest.raises(ProposalLifecycleError):
            make_proposal().transition_to(ProposalStatus.QUEUED)

    def test_history_is_a_copy(self):
        p = make_proposal()
        p.history.append({"to": "bogus"})
        assert len(p.history) == 1

    def test_to_dict(self):
        d = make_proposal().to_dict()
        assert d["status"] == "ACTIVE"
        assert d["index"] == 0
        assert len(d["actions"]) == 1


# ══════════════════════════════════════════════════════════════════════
#  FINALIZE / QUEUE / EXECUTE
# ══════════════════════════════════════════════════════════════════════

class TestFinalize:

    def test_passed_after_end(self):
        dao = make_dao()
        p = with_votes(make_proposal(dao), 80, 20)
        result = finalize_proposal(p, dao, p.end_time + 1)
        assert result.passed
        assert p.status == ProposalStatus.SUCCEEDED

    def test_failed_after_end(self):
        dao = make_dao()
        p = with_votes(make_proposal(dao), 5, 0)
        result = finalize_proposal(p, dao, p.end_time + 1)
        assert result.reason == "Quorum not reached"
        assert p.status == ProposalStatus.FAILED

    def test_too_early(self):
        dao = make_dao()
        p = with_votes(make_proposal(dao), 800, 0)
        with pytest.raises(ProposalLifecycleError, match="open until"):
            finalize_proposal(p, dao, p.end_time)
        assert p.status == ProposalStatus.ACTIVE

    def test_early_with_allow_early_execution(self):
        dao = make_dao(allow_early_execution=True)
        p = with_votes(make_proposal(dao), 800, 0)
        assert finalize_proposal(p, dao, NOW + 10).passed
        assert p.status == ProposalStatus.SUCCEEDED

    def test_early_failing_still_refused(self):
        dao = make_dao(allow_early_execution=True)
        p = with_votes(make_proposal(dao), 5, 0)
        with pytest.raises(ProposalLifecycleError):
            finalize_proposal(p, dao, NOW + 10)

    def test_explicit_total_power(self):
        dao = make_dao()
        p = with_votes(make_proposal(dao), 50, 0)
        assert finalize_proposal(p, dao, p.end_time + 1, total_voting_power=500).passed

    def test_not_active(self):
        dao = make_dao()
        p = make_proposal(dao)
        p.transition_to(ProposalStatus.CANCELLED)
        with pytest.raises(ProposalLifecycleError, match="not ACTIVE"):
            finalize_proposal(p, dao, p.end_time + 1)


class TestQueueAndExecute:

    def _succeeded(self):
        dao = make_dao()
        p = with_votes(make_proposal(dao), 80, 20)
        finalize_proposal(p, dao, p.end_time + 1)
        return dao, p

    def test_scenario_full_lifecycle(self):
        dao, p = self._succeeded()
        t = p.end_time + 1
        eta = queue_proposal(p, dao.config.execution_delay, t)
        assert eta == t + DAY
        assert p.status == ProposalStatus.QUEUED

        check = can_execute_proposal(p, eta - 1)
        assert not check
        assert check.reason == "Execution delay not passed"

        check, ix = execute_proposal(p, dao, STRANGER, eta)
        assert check.can_execute
        assert ix.data == discriminator_bytes(Discriminator.EXECUTE_PROPOSAL)
        assert ix.keys[3].pubkey == dao.treasury
        assert p.status == ProposalStatus.EXECUTED

    def test_queue_requires_succeeded(self):
        p = make_proposal()
        with pytest.raises(ProposalLifecycleError):
            queue_proposal(p, DAY, NOW)
        assert p.execution_time is None

    def test_execution_time_set_once(self):
        _, p = self._succeeded()
        queue_proposal(p, DAY, NOW)
        with pytest.raises(ProposalLifecycleError):
            queue_proposal(p, DAY, NOW + 5)
        assert p.execution_time == NOW + DAY

    def test_not_queued(self):
        dao, p = self._succeeded()
        check, ix = execute_proposal(p, dao, STRANGER, NOW + 100 * DAY)
        assert ix is None
        assert check.reason == "Proposal is not queued"
        assert p.status == ProposalStatus.SUCCEEDED

    def test_delay_not_passed_leaves_state(self):
        dao, p = self._succeeded()
        eta = queue_proposal(p, DAY, NOW)
        check, ix = execute_proposal(p, dao, STRANGER, eta - 1)
        assert ix is None
        assert not check.can_execute
        assert p.status == ProposalStatus.QUEUED

    def test_zero_delay_executes_immediately(self):
        _, p = self._succeeded()
        eta = queue_proposal(p, 0, NOW)
        assert can_execute_proposal(p, eta).can_execute


# ══════════════════════════════════════════════════════════════════════
#  CANCEL
# ══════════════════════════════════════════════════════════════════════

class TestCancel:

    def test_proposer_cancels(self):
        dao = make_dao()
        p = make_proposal(dao)
        ix = cancel_proposal(p, dao, PROPOSER, NOW + 1)
        assert p.status == ProposalStatus.CANCELLED
        assert ix.keys[0].pubkey == PROPOSER
        assert ix.keys[0].is_signer

    def test_authority_cancels_succeeded(self):
        dao = make_dao()
        p = with_votes(make_proposal(dao), 80, 20)
        finalize_proposal(p, dao, p.end_time + 1)
        cancel_proposal(p, dao, AUTHORITY, p.end_time + 2)
        assert p.status == ProposalStatus.CANCELLED

    def test_stranger_rejected(self):
        dao = make_dao()
        p = make_proposal(dao)
        with pytest.raises(UnauthorizedError):
            cancel_proposal(p, dao, STRANGER, NOW)
        assert p.status == ProposalStatus.ACTIVE

    def test_cannot_cancel_executed(self):
        dao = make_dao()
        p = with_votes(make_proposal(dao), 80, 20)
        finalize_proposal(p, dao, p.end_time + 1)
        eta = queue_proposal(p, 0, p.end_time + 1)
        execute_proposal(p, dao, STRANGER, eta)
        with pytest.raises(ProposalLifecycleError):
            cancel_proposal(p, dao, PROPOSER, eta + 1)
