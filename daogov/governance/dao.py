"""
DAO Administration

DAO configuration, creation, config updates and authority transfer.
Durations are accepted either as integer seconds or as strings such as
``"5 days"`` and are always stored as integer seconds.
"""

import re
from dataclasses import dataclass, replace
from enum import IntEnum
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from ..constants import (
    DEFAULT_EXECUTION_DELAY_SECONDS,
    DURATION_UNITS,
    PERCENT_MAX,
    PERCENT_MIN,
)
from ..crypto.address import PublicKey
from ..exceptions import DaoGovException, ValidationError
from ..logger import get_logger
from ..programs.instructions import (
    TransactionInstruction,
    create_create_dao_instruction,
    create_create_treasury_instruction,
    create_set_dao_authority_instruction,
    create_update_dao_config_instruction,
)
from ..programs.program import get_dao_address, get_treasury_address

logger = get_logger(__name__)


# ══════════════════════════════════════════════════════════════════════
#  EXCEPTIONS
# ══════════════════════════════════════════════════════════════════════

class GovernanceError(DaoGovException):
    """Base governance exception."""


class UnauthorizedError(GovernanceError):
    """Signer is not the DAO authority."""


# ══════════════════════════════════════════════════════════════════════
#  DURATIONS
# ══════════════════════════════════════════════════════════════════════

_DURATION_RE = re.compile(r"(\d+)\s*(second|minute|hour|day|week)s?", re.IGNORECASE | re.ASCII)

Duration = Union[str, int]


def parse_duration(duration: Duration) -> int:
    """
    Parse a duration into seconds.

    Integers pass through unchanged. Strings must look like ``"30 minutes"``,
    ``"1 week"`` or ``"5days"`` (case-insensitive, optional plural ``s``).

    Raises:
        ValidationError: the string does not match the duration grammar
    """
    if isinstance(duration, int) and not isinstance(duration, bool):
        if duration < 0:
            raise ValidationError(f"Invalid duration: {duration}")
        return duration
    if not isinstance(duration, str):
        raise ValidationError(f"Invalid duration: {duration!r}")
    match = _DURATION_RE.fullmatch(duration)
    if not match:
        raise ValidationError(f"Invalid duration: {duration}")
    return int(match.group(1)) * DURATION_UNITS[match.group(2).lower()]


# ══════════════════════════════════════════════════════════════════════
#  CONFIG
# ══════════════════════════════════════════════════════════════════════

class VoteWeightType(IntEnum):
    """How token holdings become vote weight; written as a u8 into createDao."""
    TOKEN = 0
    QUADRATIC = 1
    NFT = 2
    TIME_WEIGHTED = 3

    @classmethod
    def parse(cls, value: Union["VoteWeightType", int, str]) -> "VoteWeightType":
        if isinstance(value, str):
            key = value.strip().upper().replace("-", "_")
            try:
                return cls[key]
            except KeyError:
                raise ValidationError(f"Unknown vote weight type: {value}") from None
        try:
            return cls(value)
        except ValueError:
            raise ValidationError(f"Unknown vote weight type: {value}") from None

    @property
    def tag(self) -> str:
        return self.name.lower().replace("_", "-")


@dataclass
class DAOConfig:
    """Voting rules of a DAO. All durations in seconds."""
    voting_period: int
    quorum: int
    approval_threshold: int
    execution_delay: int = DEFAULT_EXECUTION_DELAY_SECONDS
    min_proposal_threshold: int = 0
    veto_authority: Optional[PublicKey] = None
    vote_weight_type: VoteWeightType = VoteWeightType.TOKEN
    allow_early_execution: bool = False
    allow_vote_change: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "votingPeriod": self.voting_period,
            "quorum": self.quorum,
            "approvalThreshold": self.approval_threshold,
            "executionDelay": self.execution_delay,
            "minProposalThreshold": self.min_proposal_threshold,
            "vetoAuthority": self.veto_authority.to_base58() if self.veto_authority else None,
            "voteWeightType": self.vote_weight_type.tag,
            "allowEarlyExecution": self.allow_early_execution,
            "allowVoteChange": self.allow_vote_change,
        }


@dataclass
class DAO:
    """
    In-memory view of a DAO account.

    ``proposal_count`` only ever grows; it is the index of the next
    proposal.
    """
    address: PublicKey
    name: str
    authority: PublicKey
    governance_token: PublicKey
    treasury: PublicKey
    config: DAOConfig
    proposal_count: int = 0
    total_voting_power: int = 0
    created_at: int = 0

    def next_proposal_index(self) -> int:
        index = self.proposal_count
        self.proposal_count += 1
        return index

    def to_dict(self) -> Dict[str, Any]:
        return {
            "address": self.address.to_base58(),
            "name": self.name,
            "authority": self.authority.to_base58(),
            "governanceToken": self.governance_token.to_base58(),
            "treasury": self.treasury.to_base58(),
            "config": self.config.to_dict(),
            "proposalCount": self.proposal_count,
            "totalVotingPower": self.total_voting_power,
            "createdAt": self.created_at,
        }

    def __repr__(self) -> str:
        return f"<DAO '{self.name}' {self.address} proposals={self.proposal_count}>"


def validate_dao_config(options: Mapping[str, Any]) -> List[str]:
    """
    Collect every problem with a DAO config instead of stopping at the first.

    Recognised keys: ``voting_period``, ``quorum``, ``approval_threshold``
    and the optional ``execution_delay``. Returns an empty list when the
    config is usable.
    """
    errors: List[str] = []
    quorum = options.get("quorum")
    threshold = options.get("approval_threshold")

    quorum_ok = isinstance(quorum, int) and PERCENT_MIN <= quorum <= PERCENT_MAX
    threshold_ok = isinstance(threshold, int) and PERCENT_MIN <= threshold <= PERCENT_MAX
    if not quorum_ok:
        errors.append(f"Quorum must be between {PERCENT_MIN} and {PERCENT_MAX}")
    if not threshold_ok:
        errors.append(f"Approval threshold must be between {PERCENT_MIN} and {PERCENT_MAX}")
    if quorum_ok and threshold_ok and threshold < quorum:
        errors.append("Approval threshold should be >= quorum")

    try:
        parse_duration(options.get("voting_period"))
    except ValidationError:
        errors.append("Invalid voting period format")

    if options.get("execution_delay") is not None:
        try:
            parse_duration(options["execution_delay"])
        except ValidationError:
            errors.append("Invalid execution delay format")

    return errors


def _raise_first(errors: List[str]) -> None:
    if errors:
        logger.warning(f"Rejected DAO config: {'; '.join(errors)}")
        raise ValidationError(errors[0])


# ══════════════════════════════════════════════════════════════════════
#  OPERATIONS
# ══════════════════════════════════════════════════════════════════════

def create_dao(
    authority: PublicKey,
    name: str,
    governance_token: PublicKey,
    config: Mapping[str, Any],
    now: int,
) -> Tuple[DAO, List[TransactionInstruction]]:
    """
    Build a new DAO and the instructions that create it on-chain.

    *config* keys: ``voting_period`` and ``quorum`` and ``approval_threshold``
    are required; ``execution_delay`` (default 1 day),
    ``min_proposal_threshold``, ``veto_authority``, ``vote_weight_type``,
    ``allow_early_execution`` and ``allow_vote_change`` are optional.

    Returns the DAO together with ``[createDao, createTreasury]``.

    Raises:
        ValidationError: bad config or empty name
        InvalidSeedsError: name longer than 32 UTF-8 bytes
    """
    if not name:
        raise ValidationError("DAO name cannot be empty")
    _raise_first(validate_dao_config(config))

    dao_config = DAOConfig(
        voting_period=parse_duration(config["voting_period"]),
        quorum=config["quorum"],
        approval_threshold=config["approval_threshold"],
        execution_delay=(
            parse_duration(config["execution_delay"])
            if config.get("execution_delay")
            else DEFAULT_EXECUTION_DELAY_SECONDS
        ),
        min_proposal_threshold=config.get("min_proposal_threshold") or 0,
        veto_authority=config.get("veto_authority"),
        vote_weight_type=VoteWeightType.parse(config.get("vote_weight_type", VoteWeightType.TOKEN)),
        allow_early_execution=bool(config.get("allow_early_execution", False)),
        allow_vote_change=bool(config.get("allow_vote_change", False)),
    )

    address = get_dao_address(authority, name)
    treasury = get_treasury_address(address)
    dao = DAO(
        address=address,
        name=name,
        authority=authority,
        governance_token=governance_token,
        treasury=treasury,
        config=dao_config,
        created_at=now,
    )

    instructions = [
        create_create_dao_instruction(
            authority, address, governance_token, treasury, name,
            dao_config.voting_period,
            dao_config.quorum,
            dao_config.approval_threshold,
            dao_config.execution_delay,
            dao_config.min_proposal_threshold,
            dao_config.vote_weight_type,
            dao_config.allow_early_execution,
            dao_config.allow_vote_change,
        ),
        create_create_treasury_instruction(authority, address, treasury),
    ]
    logger.info(f"DAO '{name}' created at {address} (treasury {treasury})")
    return dao, instructions


def _require_authority(dao: DAO, authority: PublicKey) -> None:
    if authority != dao.authority:
        logger.warning(f"{authority} is not the authority of DAO '{dao.name}'")
        raise UnauthorizedError(f"{authority} is not the authority of DAO '{dao.name}'")


def update_dao_config(
    dao: DAO,
    authority: PublicKey,
    voting_period: Optional[Duration] = None,
    quorum: Optional[int] = None,
    approval_threshold: Optional[int] = None,
    execution_delay: Optional[Duration] = None,
) -> TransactionInstruction:
    """
    Change any subset of the four mutable config fields.

    Fields left as ``None`` are encoded as absent and keep their value.
    The merged config is validated before anything is applied.
    """
    _require_authority(dao, authority)

    current = dao.config
    merged = {
        "voting_period": current.voting_period if voting_period is None else voting_period,
        "quorum": current.quorum if quorum is None else quorum,
        "approval_threshold": (
            current.approval_threshold if approval_threshold is None else approval_threshold
        ),
        "execution_delay": current.execution_delay if execution_delay is None else execution_delay,
    }
    _raise_first(validate_dao_config(merged))

    period_s = None if voting_period is None else parse_duration(voting_period)
    delay_s = None if execution_delay is None else parse_duration(execution_delay)

    instruction = create_update_dao_config_instruction(
        authority, dao.address, period_s, quorum, approval_threshold, delay_s,
    )
    dao.config = replace(
        current,
        voting_period=current.voting_period if period_s is None else period_s,
        quorum=merged["quorum"],
        approval_threshold=merged["approval_threshold"],
        execution_delay=current.execution_delay if delay_s is None else delay_s,
    )
    logger.info(f"DAO '{dao.name}' config updated: {dao.config.to_dict()}")
    return instruction


def set_dao_authority(
    dao: DAO,
    authority: PublicKey,
    new_authority: PublicKey,
) -> TransactionInstruction:
    """Hand DAO administration to *new_authority*."""
    _require_authority(dao, authority)
    instruction = create_set_dao_authority_instruction(authority, dao.address, new_authority)
    dao.authority = new_authority
    logger.info(f"DAO '{dao.name}' authority {authority} → {new_authority}")
    return instruction
