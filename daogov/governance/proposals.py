"""
Governance Proposals

Proposal lifecycle states, the Proposal dataclass, tally evaluation and
the transitions that move a proposal from voting to execution:

    ACTIVE ──► SUCCEEDED ──► QUEUED ──► EXECUTED
      │            │
      ├──► FAILED  └──► CANCELLED
      └──► CANCELLED

Every time-dependent function takes ``now`` (unix seconds) explicitly.
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Dict, List, Optional, Sequence, Tuple

from ..constants import MAX_PROPOSAL_TITLE_LENGTH
from ..crypto.address import PublicKey
from ..exceptions import ValidationError
from ..logger import get_logger
from ..programs.instructions import (
    TransactionInstruction,
    create_cancel_proposal_instruction,
    create_create_proposal_instruction,
    create_execute_proposal_instruction,
)
from ..programs.program import get_proposal_address
from .actions import ProposalAction
from .dao import DAO, GovernanceError, UnauthorizedError

logger = get_logger(__name__)


# ══════════════════════════════════════════════════════════════════════
#  EXCEPTIONS
# ══════════════════════════════════════════════════════════════════════

class ProposalLifecycleError(GovernanceError):
    """Raised on illegal state transitions."""


class ProposalThresholdError(GovernanceError):
    """Proposer holds less than the DAO's minimum proposal threshold."""


# ══════════════════════════════════════════════════════════════════════
#  STATUS
# ══════════════════════════════════════════════════════════════════════

class ProposalStatus(IntEnum):
    """Lifecycle stage."""
    ACTIVE = 0          # Voting in progress
    SUCCEEDED = 1       # Quorum and approval met
    FAILED = 2          # Voting concluded without passing
    CANCELLED = 3       # Withdrawn before queueing
    QUEUED = 4          # Waiting out the execution delay
    EXECUTED = 5        # Actions executed


# Valid forward transitions
_VALID_TRANSITIONS: Dict[ProposalStatus, set] = {
    ProposalStatus.ACTIVE:     {ProposalStatus.SUCCEEDED, ProposalStatus.FAILED,
                                ProposalStatus.CANCELLED},
    ProposalStatus.SUCCEEDED:  {ProposalStatus.QUEUED, ProposalStatus.CANCELLED},
    ProposalStatus.QUEUED:     {ProposalStatus.EXECUTED},
    # Terminal states
    ProposalStatus.FAILED:     set(),
    ProposalStatus.CANCELLED:  set(),
    ProposalStatus.EXECUTED:   set(),
}


# ══════════════════════════════════════════════════════════════════════
#  RESULTS
# ══════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class ProposalResult:
    passed: bool
    reason: str


@dataclass(frozen=True)
class ExecutionCheck:
    can_execute: bool
    reason: Optional[str] = None

    def __bool__(self) -> bool:
        return self.can_execute


# ══════════════════════════════════════════════════════════════════════
#  PROPOSAL
# ══════════════════════════════════════════════════════════════════════

@dataclass
class Proposal:
    """
    In-memory view of a proposal account.

    Fields:
        address:         Derived from (dao, index)
        index:           Position in the DAO's proposal sequence
        for_votes:       Weighted FOR tally (likewise against / abstain)
        start_time:      Voting opens (inclusive)
        end_time:        Voting closes (inclusive)
        execution_time:  Earliest execution; set once, when queued
    """
    address: PublicKey
    dao: PublicKey
    index: int
    proposer: PublicKey
    title: str
    description: str
    start_time: int
    end_time: int
    status: ProposalStatus = ProposalStatus.ACTIVE
    for_votes: int = 0
    against_votes: int = 0
    abstain_votes: int = 0
    execution_time: Optional[int] = None
    actions: List[ProposalAction] = field(default_factory=list)
    created_at: int = 0
    _history: List[Dict[str, Any]] = field(default_factory=list, repr=False)

    def __post_init__(self):
        if not self._history:
            self._history.append({
                "from": "INIT",
                "to": self.status.name,
                "reason": "created",
                "timestamp": self.created_at,
            })

    # ── Properties ────────────────────────────────────────────────────

    @property
    def total_votes(self) -> int:
        return self.for_votes + self.against_votes + self.abstain_votes

    @property
    def is_terminal(self) -> bool:
        return not _VALID_TRANSITIONS[self.status]

    @property
    def history(self) -> List[Dict[str, Any]]:
        return list(self._history)

    # ── State transitions ─────────────────────────────────────────────

    def transition_to(self, new_status: ProposalStatus, reason: str = "", now: int = 0):
        """
        Advance proposal to *new_status*.

        Raises ProposalLifecycleError on invalid transitions.
        """
        allowed = _VALID_TRANSITIONS.get(self.status, set())
        if new_status not in allowed:
            raise ProposalLifecycleError(
                f"Cannot transition from {self.status.name} → {new_status.name}. "
                f"Allowed: {sorted(s.name for s in allowed)}"
            )
        old = self.status
        self._history.append({
            "from": old.name,
            "to": new_status.name,
            "reason": reason,
            "timestamp": now,
        })
        self.status = new_status
        logger.info(
            f"Proposal #{self.index} ({self.title}): "
            f"{old.name} → {new_status.name} | {reason}"
        )

    # ── Serialization ─────────────────────────────────────────────────

    def to_dict(self) -> Dict[str, Any]:
        return {
            "address": self.address.to_base58(),
            "dao": self.dao.to_base58(),
            "index": self.index,
            "proposer": self.proposer.to_base58(),
            "title": self.title,
            "description": self.description,
            "status": self.status.name,
            "forVotes": self.for_votes,
            "againstVotes": self.against_votes,
            "abstainVotes": self.abstain_votes,
            "startTime": self.start_time,
            "endTime": self.end_time,
            "executionTime": self.execution_time,
            "actions": [a.to_dict() for a in self.actions],
            "createdAt": self.created_at,
            "historyLength": len(self._history),
        }

    def __repr__(self) -> str:
        return f"<Proposal #{self.index} '{self.title}' status={self.status.name}>"


# ══════════════════════════════════════════════════════════════════════
#  CREATION
# ══════════════════════════════════════════════════════════════════════

def validate_proposal_input(title: str, actions: Sequence[ProposalAction]) -> None:
    """Raises ValidationError for an empty or overlong title or no actions."""
    if not title or not title.strip():
        raise ValidationError("Proposal title cannot be empty")
    if len(title) > MAX_PROPOSAL_TITLE_LENGTH:
        raise ValidationError(
            f"Proposal title must be at most {MAX_PROPOSAL_TITLE_LENGTH} characters"
        )
    if not actions:
        raise ValidationError("Proposal must have at least one action")


def create_proposal(
    dao: DAO,
    proposer: PublicKey,
    title: str,
    description: str,
    actions: Sequence[ProposalAction],
    now: int,
    proposer_power: Optional[int] = None,
) -> Tuple[Proposal, TransactionInstruction]:
    """
    Open a new proposal on *dao* at the DAO's next index.

    Voting runs from *now* to ``now + voting_period``. When *proposer_power*
    is given it must reach the DAO's ``min_proposal_threshold``.
    """
    validate_proposal_input(title, actions)
    threshold = dao.config.min_proposal_threshold
    if proposer_power is not None and proposer_power < threshold:
        raise ProposalThresholdError(
            f"Proposer power {proposer_power} < required {threshold}"
        )

    index = dao.proposal_count
    address = get_proposal_address(dao.address, index)
    instruction = create_create_proposal_instruction(
        proposer, dao.address, address, title, description, len(actions),
    )
    dao.next_proposal_index()

    proposal = Proposal(
        address=address,
        dao=dao.address,
        index=index,
        proposer=proposer,
        title=title,
        description=description,
        start_time=now,
        end_time=now + dao.config.voting_period,
        actions=list(actions),
        created_at=now,
    )
    logger.info(
        f"Proposal #{index} '{title}' opened on DAO '{dao.name}' "
        f"(voting until {proposal.end_time})"
    )
    return proposal, instruction


# ══════════════════════════════════════════════════════════════════════
#  TALLY
# ══════════════════════════════════════════════════════════════════════

def calculate_proposal_result(
    proposal: Proposal,
    quorum: int,
    approval_threshold: int,
    total_voting_power: int,
) -> ProposalResult:
    """
    Evaluate the tally with integer arithmetic only.

    Quorum is met when ``total*100 >= total_voting_power*quorum``; approval
    when ``for*100 >= total*approval_threshold``.
    """
    total = proposal.total_votes
    if total * 100 < total_voting_power * quorum:
        return ProposalResult(False, "Quorum not reached")
    if proposal.for_votes * 100 < total * approval_threshold:
        return ProposalResult(False, "Approval threshold not met")
    return ProposalResult(True, "Proposal passed")


def finalize_proposal(
    proposal: Proposal,
    dao: DAO,
    now: int,
    total_voting_power: Optional[int] = None,
) -> ProposalResult:
    """
    Close voting: ACTIVE → SUCCEEDED or FAILED.

    Allowed once ``now`` is past ``end_time``. With ``allow_early_execution``
    a proposal that already passes may be closed early.
    """
    if proposal.status != ProposalStatus.ACTIVE:
        raise ProposalLifecycleError(
            f"Proposal #{proposal.index} is {proposal.status.name}, not ACTIVE"
        )
    power = dao.total_voting_power if total_voting_power is None else total_voting_power
    result = calculate_proposal_result(
        proposal, dao.config.quorum, dao.config.approval_threshold, power,
    )

    if now <= proposal.end_time:
        if not (dao.config.allow_early_execution and result.passed):
            raise ProposalLifecycleError(
                f"Voting on proposal #{proposal.index} is open until {proposal.end_time}"
            )

    new_status = ProposalStatus.SUCCEEDED if result.passed else ProposalStatus.FAILED
    proposal.transition_to(new_status, result.reason, now)
    return result


def queue_proposal(proposal: Proposal, execution_delay: int, now: int) -> int:
    """SUCCEEDED → QUEUED. Sets and returns ``execution_time``."""
    if proposal.execution_time is not None:
        raise ProposalLifecycleError(
            f"Proposal #{proposal.index} already has an execution time"
        )
    execution_time = now + execution_delay
    proposal.transition_to(ProposalStatus.QUEUED, f"Queued with ETA {execution_time}", now)
    proposal.execution_time = execution_time
    return execution_time


# ══════════════════════════════════════════════════════════════════════
#  EXECUTION
# ══════════════════════════════════════════════════════════════════════

def can_execute_proposal(proposal: Proposal, now: int) -> ExecutionCheck:
    """Never raises; callers branch on the returned check."""
    if proposal.status != ProposalStatus.QUEUED:
        return ExecutionCheck(False, "Proposal is not queued")
    if proposal.execution_time is not None and now < proposal.execution_time:
        return ExecutionCheck(False, "Execution delay not passed")
    return ExecutionCheck(True)


def execute_proposal(
    proposal: Proposal,
    dao: DAO,
    executor: PublicKey,
    now: int,
) -> Tuple[ExecutionCheck, Optional[TransactionInstruction]]:
    """
    QUEUED → EXECUTED when the check allows it.

    A negative check is returned with no instruction and the proposal
    left untouched.
    """
    check = can_execute_proposal(proposal, now)
    if not check.can_execute:
        logger.warning(f"Proposal #{proposal.index} not executable: {check.reason}")
        return check, None

    instruction = create_execute_proposal_instruction(
        executor, dao.address, proposal.address, dao.treasury,
    )
    proposal.transition_to(ProposalStatus.EXECUTED, f"Executed by {executor}", now)
    return check, instruction


def cancel_proposal(
    proposal: Proposal,
    dao: DAO,
    authority: PublicKey,
    now: int,
) -> TransactionInstruction:
    """ACTIVE or SUCCEEDED → CANCELLED, by the proposer or the DAO authority."""
    if authority not in (proposal.proposer, dao.authority):
        raise UnauthorizedError(
            f"{authority} may not cancel proposal #{proposal.index}"
        )
    instruction = create_cancel_proposal_instruction(authority, dao.address, proposal.address)
    proposal.transition_to(ProposalStatus.CANCELLED, f"Cancelled by {authority}", now)
    return instruction
