"""
Voting Power Engine & Vote Casting

Implements:
  - Vote types: For / Against / Abstain (abstain counts toward quorum)
  - Voting power strategies: token, quadratic, nft, time-weighted
  - Voting window checks and time remaining
  - Vote breakdown percentages
  - Cast / change / withdraw vote with in-memory tally updates

Strategies are passed explicitly by the caller; nothing is looked up in a
global registry.
"""

import math
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Dict, Optional, Tuple, Union

from ..constants import (
    MULTIPLIER_PRECISION,
    SECONDS_PER_DAY,
    TIME_WEIGHT_DEFAULT_CURVE,
    TIME_WEIGHT_DEFAULT_MAX_DURATION_SECONDS,
    TIME_WEIGHT_DEFAULT_MAX_MULTIPLIER,
)
from ..crypto.address import PublicKey
from ..exceptions import ValidationError
from ..logger import get_logger
from ..programs.instructions import (
    TransactionInstruction,
    create_cast_vote_instruction,
    create_change_vote_instruction,
    create_withdraw_vote_instruction,
)
from ..programs.program import get_vote_record_address
from .dao import DAO, GovernanceError, VoteWeightType
from .proposals import Proposal, ProposalStatus

logger = get_logger(__name__)


# ══════════════════════════════════════════════════════════════════════
#  EXCEPTIONS
# ══════════════════════════════════════════════════════════════════════

class VotingError(GovernanceError):
    """Base voting error."""


class VotingClosedError(VotingError):
    """Voting period not active."""


class InsufficientVotingPowerError(VotingError):
    """Voter has no voting power."""


class VoteChangeNotAllowedError(VotingError):
    """DAO does not allow changing a cast vote."""


# ══════════════════════════════════════════════════════════════════════
#  VOTE DATA
# ══════════════════════════════════════════════════════════════════════

class VoteType(IntEnum):
    """Vote choice; written as a u8 into castVote / changeVote."""
    FOR = 0
    AGAINST = 1
    ABSTAIN = 2

    @classmethod
    def parse(cls, value: Union["VoteType", int, str]) -> "VoteType":
        if isinstance(value, str):
            try:
                return cls[value.strip().upper()]
            except KeyError:
                raise ValidationError(f"Unknown vote type: {value}") from None
        try:
            return cls(value)
        except ValueError:
            raise ValidationError(f"Unknown vote type: {value}") from None


_TALLY_FIELDS = {
    VoteType.FOR: "for_votes",
    VoteType.AGAINST: "against_votes",
    VoteType.ABSTAIN: "abstain_votes",
}


@dataclass(frozen=True)
class VoteRecord:
    """A vote, with the weight snapshotted when it was cast."""
    address: PublicKey
    proposal: PublicKey
    voter: PublicKey
    vote_type: VoteType
    voting_power: int
    timestamp: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "address": self.address.to_base58(),
            "proposal": self.proposal.to_base58(),
            "voter": self.voter.to_base58(),
            "voteType": self.vote_type.name,
            "votingPower": self.voting_power,
            "timestamp": self.timestamp,
        }


# ══════════════════════════════════════════════════════════════════════
#  VOTING POWER
# ══════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class TimeWeightConfig:
    curve: str = TIME_WEIGHT_DEFAULT_CURVE
    max_multiplier: float = TIME_WEIGHT_DEFAULT_MAX_MULTIPLIER
    max_duration_seconds: int = TIME_WEIGHT_DEFAULT_MAX_DURATION_SECONDS

    def __post_init__(self):
        if self.curve not in ("linear", "exponential"):
            raise ValidationError(f"Unknown time-weight curve: {self.curve}")
        if self.max_multiplier < 1:
            raise ValidationError("max_multiplier must be >= 1")
        if self.max_duration_seconds <= 0:
            raise ValidationError("max_duration_seconds must be > 0")


@dataclass(frozen=True)
class TokenStrategy:
    tag = "token"


@dataclass(frozen=True)
class QuadraticStrategy:
    tag = "quadratic"


@dataclass(frozen=True)
class NFTStrategy:
    nft_count: int = 0

    tag = "nft"


@dataclass(frozen=True)
class TimeWeightedStrategy:
    hold_duration: int = 0
    config: TimeWeightConfig = field(default_factory=TimeWeightConfig)

    tag = "time-weighted"


VotingStrategy = Union[TokenStrategy, QuadraticStrategy, NFTStrategy, TimeWeightedStrategy]


def calculate_quadratic_power(balance: int) -> int:
    """
    Integer square root by Newton's method.

    Returns ``r`` with ``r*r <= balance < (r+1)*(r+1)``; 0 for balance <= 0.
    """
    if balance <= 0:
        return 0
    x = balance
    y = (x + 1) // 2
    while y < x:
        x = y
        y = (x + balance // x) // 2
    return x


def calculate_nft_voting_power(nft_count: int) -> int:
    """One vote per NFT held."""
    return max(nft_count, 0)


def get_time_weighted_multiplier(
    hold_duration: int,
    config: Optional[TimeWeightConfig] = None,
) -> float:
    """
    Multiplier in ``[1, max_multiplier]``, non-decreasing in hold duration.

    linear:       1 + (max - 1) * ratio
    exponential:  max ** ratio
    where ratio = min(hold_duration / max_duration, 1).
    """
    config = config or TimeWeightConfig()
    if hold_duration <= 0:
        return 1.0
    ratio = min(hold_duration / config.max_duration_seconds, 1.0)
    if config.curve == "exponential":
        return config.max_multiplier ** ratio
    return 1 + (config.max_multiplier - 1) * ratio


def calculate_time_weighted_power(
    balance: int,
    hold_duration: int,
    config: Optional[TimeWeightConfig] = None,
) -> int:
    multiplier = get_time_weighted_multiplier(hold_duration, config)
    # Quantize to 4 decimals, half-up, before touching the integer balance
    scaled = math.floor(multiplier * MULTIPLIER_PRECISION + 0.5)
    return balance * scaled // MULTIPLIER_PRECISION


def calculate_weighted_power(
    strategy: Union[VotingStrategy, str],
    balance: int,
    nft_count: int = 0,
    hold_duration: int = 0,
    time_weight: Optional[TimeWeightConfig] = None,
) -> int:
    """
    Convert a raw balance into vote weight under *strategy*.

    *strategy* is a strategy object, or one of the tags ``"token"``,
    ``"quadratic"``, ``"nft"``, ``"time-weighted"`` combined with the
    keyword options. Unknown tags count the balance as-is.
    """
    if isinstance(strategy, str):
        tag = strategy.strip().lower().replace("_", "-")
        if tag == "token":
            strategy = TokenStrategy()
        elif tag == "quadratic":
            strategy = QuadraticStrategy()
        elif tag == "nft":
            strategy = NFTStrategy(nft_count)
        elif tag == "time-weighted":
            strategy = TimeWeightedStrategy(hold_duration, time_weight or TimeWeightConfig())
        else:
            logger.warning(f"Unknown voting strategy '{strategy}', counting raw balance")
            return balance

    if isinstance(strategy, TokenStrategy):
        return balance
    if isinstance(strategy, QuadraticStrategy):
        return calculate_quadratic_power(balance)
    if isinstance(strategy, NFTStrategy):
        return calculate_nft_voting_power(strategy.nft_count)
    if isinstance(strategy, TimeWeightedStrategy):
        return calculate_time_weighted_power(balance, strategy.hold_duration, strategy.config)

    logger.warning(f"Unknown voting strategy {strategy!r}, counting raw balance")
    return balance


def strategy_for(
    vote_weight_type: VoteWeightType,
    nft_count: int = 0,
    hold_duration: int = 0,
    time_weight: Optional[TimeWeightConfig] = None,
) -> VotingStrategy:
    """Strategy object matching a DAO's configured vote weight type."""
    if vote_weight_type == VoteWeightType.QUADRATIC:
        return QuadraticStrategy()
    if vote_weight_type == VoteWeightType.NFT:
        return NFTStrategy(nft_count)
    if vote_weight_type == VoteWeightType.TIME_WEIGHTED:
        return TimeWeightedStrategy(hold_duration, time_weight or TimeWeightConfig())
    return TokenStrategy()


# ══════════════════════════════════════════════════════════════════════
#  QUERIES
# ══════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class TimeRemaining:
    seconds: int
    formatted: str


@dataclass(frozen=True)
class VoteBreakdown:
    for_percentage: float
    against_percentage: float
    abstain_percentage: float
    total_votes: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "forPercentage": self.for_percentage,
            "againstPercentage": self.against_percentage,
            "abstainPercentage": self.abstain_percentage,
            "totalVotes": self.total_votes,
        }


def is_voting_open(proposal: Proposal, now: int) -> bool:
    return (
        proposal.status == ProposalStatus.ACTIVE
        and proposal.start_time <= now <= proposal.end_time
    )


def get_voting_time_remaining(proposal: Proposal, now: int) -> TimeRemaining:
    if now >= proposal.end_time:
        return TimeRemaining(0, "Ended")

    remaining = proposal.end_time - now
    days = remaining // SECONDS_PER_DAY
    hours = remaining % SECONDS_PER_DAY // 3600
    minutes = remaining % 3600 // 60

    parts = []
    if days:
        parts.append(f"{days}d")
    if hours:
        parts.append(f"{hours}h")
    if minutes:
        parts.append(f"{minutes}m")
    return TimeRemaining(remaining, " ".join(parts) or "Less than 1 minute")


def calculate_vote_breakdown(proposal: Proposal) -> VoteBreakdown:
    """Percentages with two decimals, from integer basis points."""
    total = proposal.total_votes
    if total == 0:
        return VoteBreakdown(0, 0, 0, 0)

    def pct(votes: int) -> float:
        return (votes * 10000 // total) / 100

    return VoteBreakdown(
        for_percentage=pct(proposal.for_votes),
        against_percentage=pct(proposal.against_votes),
        abstain_percentage=pct(proposal.abstain_votes),
        total_votes=total,
    )


# ══════════════════════════════════════════════════════════════════════
#  CASTING
# ══════════════════════════════════════════════════════════════════════

def _tally(proposal: Proposal, vote_type: VoteType, delta: int) -> None:
    name = _TALLY_FIELDS[vote_type]
    updated = getattr(proposal, name) + delta
    if updated < 0:
        raise VotingError(
            f"{vote_type.name} tally on proposal #{proposal.index} would drop to {updated}"
        )
    setattr(proposal, name, updated)


def _require_own_record(record: VoteRecord, proposal: Proposal) -> None:
    if record.proposal != proposal.address:
        raise VotingError(
            f"Vote record {record.address} belongs to proposal {record.proposal}, "
            f"not {proposal.address}"
        )


def _require_open(proposal: Proposal, now: int) -> None:
    if not is_voting_open(proposal, now):
        logger.warning(f"Voting closed on proposal #{proposal.index} at {now}")
        raise VotingClosedError(
            f"Voting on proposal #{proposal.index} is not open "
            f"(status={proposal.status.name}, window {proposal.start_time}..{proposal.end_time})"
        )


def cast_vote(
    proposal: Proposal,
    dao: DAO,
    voter: PublicKey,
    vote_type: Union[VoteType, int, str],
    voting_power: int,
    now: int,
) -> Tuple[VoteRecord, TransactionInstruction]:
    """
    Cast *voting_power* behind *vote_type* and add it to the tally.

    Raises:
        VotingClosedError: proposal is not accepting votes at *now*
        InsufficientVotingPowerError: *voting_power* is zero
    """
    vote_type = VoteType.parse(vote_type)
    _require_open(proposal, now)
    if voting_power <= 0:
        raise InsufficientVotingPowerError(f"{voter} has no voting power")

    record_address = get_vote_record_address(proposal.address, voter)
    instruction = create_cast_vote_instruction(
        voter, proposal.address, record_address, dao.address, dao.governance_token, vote_type,
    )
    record = VoteRecord(
        address=record_address,
        proposal=proposal.address,
        voter=voter,
        vote_type=vote_type,
        voting_power=voting_power,
        timestamp=now,
    )
    _tally(proposal, vote_type, voting_power)
    logger.info(
        f"Vote {vote_type.name} x{voting_power} by {voter} on proposal #{proposal.index}"
    )
    return record, instruction


def change_vote(
    record: VoteRecord,
    proposal: Proposal,
    dao: DAO,
    new_vote_type: Union[VoteType, int, str],
    now: int,
) -> Tuple[VoteRecord, TransactionInstruction]:
    """Move a cast vote's weight to *new_vote_type*."""
    new_vote_type = VoteType.parse(new_vote_type)
    if not dao.config.allow_vote_change:
        raise VoteChangeNotAllowedError(f"DAO '{dao.name}' does not allow vote changes")
    _require_open(proposal, now)
    _require_own_record(record, proposal)

    instruction = create_change_vote_instruction(
        record.voter, proposal.address, record.address, dao.address, new_vote_type,
    )
    _tally(proposal, record.vote_type, -record.voting_power)
    _tally(proposal, new_vote_type, record.voting_power)
    updated = VoteRecord(
        address=record.address,
        proposal=record.proposal,
        voter=record.voter,
        vote_type=new_vote_type,
        voting_power=record.voting_power,
        timestamp=now,
    )
    logger.info(
        f"Vote by {record.voter} on proposal #{proposal.index}: "
        f"{record.vote_type.name} → {new_vote_type.name}"
    )
    return updated, instruction


def withdraw_vote(
    record: VoteRecord,
    proposal: Proposal,
    dao: DAO,
    now: int,
) -> TransactionInstruction:
    """Remove a cast vote's weight from the tally."""
    _require_open(proposal, now)
    _require_own_record(record, proposal)
    instruction = create_withdraw_vote_instruction(
        record.voter, proposal.address, record.address, dao.address,
    )
    _tally(proposal, record.vote_type, -record.voting_power)
    logger.info(f"Vote by {record.voter} withdrawn from proposal #{proposal.index}")
    return instruction
