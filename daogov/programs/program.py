"""
Governance Program Constants & Derived Addresses

Program ids, the derived-address seed recipes, the instruction
discriminator table and the payload serializers for all 15 governance
program operations.
"""

from enum import IntEnum
from typing import Sequence, Union

from ..constants import (
    DISCRIMINATOR_LENGTH,
    ENDIAN,
    GOVERNANCE_PROGRAM_ID_B58,
    PUBLIC_KEY_LENGTH,
    SEED_DAO,
    SEED_DELEGATION,
    SEED_PROPOSAL,
    SEED_TREASURY,
    SEED_VOTE,
    SYSTEM_PROGRAM_ID_B58,
    SYSVAR_RENT_ID_B58,
    TOKEN_PROGRAM_ID_B58,
)
from ..crypto.address import PublicKey, find_program_address
from ..crypto.encoding import InstructionWriter, OptionLike, option_size, string_size
from ..exceptions import EncodingError
from ..logger import get_logger

logger = get_logger(__name__)


GOVERNANCE_PROGRAM_ID = PublicKey(GOVERNANCE_PROGRAM_ID_B58)
SYSTEM_PROGRAM_ID = PublicKey(SYSTEM_PROGRAM_ID_B58)
TOKEN_PROGRAM_ID = PublicKey(TOKEN_PROGRAM_ID_B58)
SYSVAR_RENT_ID = PublicKey(SYSVAR_RENT_ID_B58)


# ══════════════════════════════════════════════════════════════════════
#  DERIVED ADDRESSES
# ══════════════════════════════════════════════════════════════════════

def derive(seeds: Sequence[bytes], program_id: PublicKey = GOVERNANCE_PROGRAM_ID) -> PublicKey:
    """Canonical derived address for an ordered tuple of seed byte strings."""
    address, _bump = find_program_address(seeds, program_id)
    return address


def get_dao_address(
    authority: PublicKey,
    name: str,
    program_id: PublicKey = GOVERNANCE_PROGRAM_ID,
) -> PublicKey:
    """dao := "dao" || authority || utf8(name)"""
    return derive([SEED_DAO, authority.to_bytes(), name.encode("utf-8")], program_id)


def get_proposal_address(
    dao: PublicKey,
    index: int,
    program_id: PublicKey = GOVERNANCE_PROGRAM_ID,
) -> PublicKey:
    """proposal := "proposal" || dao || u64_le(index)"""
    if index < 0 or index >= 1 << 64:
        raise EncodingError(f"Proposal index {index} does not fit in u64")
    return derive([SEED_PROPOSAL, dao.to_bytes(), index.to_bytes(8, ENDIAN)], program_id)


def get_vote_record_address(
    proposal: PublicKey,
    voter: PublicKey,
    program_id: PublicKey = GOVERNANCE_PROGRAM_ID,
) -> PublicKey:
    """voteRecord := "vote" || proposal || voter"""
    return derive([SEED_VOTE, proposal.to_bytes(), voter.to_bytes()], program_id)


def get_delegation_address(
    dao: PublicKey,
    delegator: PublicKey,
    program_id: PublicKey = GOVERNANCE_PROGRAM_ID,
) -> PublicKey:
    """delegation := "delegation" || dao || delegator"""
    return derive([SEED_DELEGATION, dao.to_bytes(), delegator.to_bytes()], program_id)


def get_treasury_address(
    dao: PublicKey,
    program_id: PublicKey = GOVERNANCE_PROGRAM_ID,
) -> PublicKey:
    """treasury := "treasury" || dao"""
    return derive([SEED_TREASURY, dao.to_bytes()], program_id)


# ══════════════════════════════════════════════════════════════════════
#  DISCRIMINATORS
# ══════════════════════════════════════════════════════════════════════

class Discriminator(IntEnum):
    """
    Instruction tags. Values are part of the wire contract: never renumber,
    only append.
    """
    CREATE_DAO = 0
    UPDATE_DAO_CONFIG = 1
    SET_DAO_AUTHORITY = 2
    CREATE_PROPOSAL = 3
    CANCEL_PROPOSAL = 4
    EXECUTE_PROPOSAL = 5
    CAST_VOTE = 6
    CHANGE_VOTE = 7
    WITHDRAW_VOTE = 8
    DELEGATE_VOTES = 9
    UNDELEGATE = 10
    ACCEPT_DELEGATION = 11
    CREATE_TREASURY = 12
    DEPOSIT_TO_TREASURY = 13
    WITHDRAW_FROM_TREASURY = 14

    def to_bytes(self) -> bytes:
        return int(self).to_bytes(DISCRIMINATOR_LENGTH, ENDIAN)


def discriminator_bytes(discriminator: Union[Discriminator, int]) -> bytes:
    return Discriminator(discriminator).to_bytes()


def _writer(discriminator: Discriminator) -> InstructionWriter:
    return InstructionWriter().raw(discriminator.to_bytes())


def _finish(writer: InstructionWriter, expected: int, discriminator: Discriminator) -> bytes:
    if len(writer) != expected:
        raise EncodingError(
            f"{discriminator.name} payload is {len(writer)} bytes, layout says {expected}"
        )
    data = writer.getvalue()
    logger.debug(f"Encoded {discriminator.name} ({len(data)} bytes)")
    return data


# ══════════════════════════════════════════════════════════════════════
#  SERIALIZERS
# ══════════════════════════════════════════════════════════════════════

def serialize_create_dao_data(
    name: str,
    voting_period: int,
    quorum: int,
    approval_threshold: int,
    execution_delay: int,
    min_proposal_threshold: int,
    vote_weight_type: int,
    allow_early_execution: bool,
    allow_vote_change: bool,
) -> bytes:
    # disc(8) + nameLen(4) + name(var) + votingPeriod(8) + quorum(2)
    # + approvalThreshold(2) + executionDelay(8) + minProposalThreshold(8)
    # + voteWeightType(1) + allowEarlyExecution(1) + allowVoteChange(1)
    expected = DISCRIMINATOR_LENGTH + string_size(name) + 8 + 2 + 2 + 8 + 8 + 1 + 1 + 1
    w = (
        _writer(Discriminator.CREATE_DAO)
        .string(name)
        .u64(voting_period)
        .u16(quorum)
        .u16(approval_threshold)
        .u64(execution_delay)
        .u64(min_proposal_threshold)
        .u8(int(vote_weight_type))
        .bool(allow_early_execution)
        .bool(allow_vote_change)
    )
    return _finish(w, expected, Discriminator.CREATE_DAO)


def serialize_update_dao_config_data(
    voting_period: OptionLike = None,
    quorum: OptionLike = None,
    approval_threshold: OptionLike = None,
    execution_delay: OptionLike = None,
) -> bytes:
    expected = (
        DISCRIMINATOR_LENGTH
        + option_size(voting_period, 8)
        + option_size(quorum, 2)
        + option_size(approval_threshold, 2)
        + option_size(execution_delay, 8)
    )
    w = (
        _writer(Discriminator.UPDATE_DAO_CONFIG)
        .option(voting_period, InstructionWriter.u64)
        .option(quorum, InstructionWriter.u16)
        .option(approval_threshold, InstructionWriter.u16)
        .option(execution_delay, InstructionWriter.u64)
    )
    return _finish(w, expected, Discriminator.UPDATE_DAO_CONFIG)


def serialize_set_dao_authority_data(new_authority: PublicKey) -> bytes:
    w = _writer(Discriminator.SET_DAO_AUTHORITY).pubkey(new_authority)
    return _finish(w, DISCRIMINATOR_LENGTH + PUBLIC_KEY_LENGTH, Discriminator.SET_DAO_AUTHORITY)


def serialize_create_proposal_data(title: str, description: str, actions_count: int) -> bytes:
    expected = DISCRIMINATOR_LENGTH + string_size(title) + string_size(description) + 4
    w = (
        _writer(Discriminator.CREATE_PROPOSAL)
        .string(title)
        .string(description)
        .u32(actions_count)
    )
    return _finish(w, expected, Discriminator.CREATE_PROPOSAL)


def serialize_cast_vote_data(vote_type: int) -> bytes:
    w = _writer(Discriminator.CAST_VOTE).u8(int(vote_type))
    return _finish(w, DISCRIMINATOR_LENGTH + 1, Discriminator.CAST_VOTE)


def serialize_change_vote_data(new_vote_type: int) -> bytes:
    w = _writer(Discriminator.CHANGE_VOTE).u8(int(new_vote_type))
    return _finish(w, DISCRIMINATOR_LENGTH + 1, Discriminator.CHANGE_VOTE)


def serialize_delegate_votes_data(amount: int, expires_at: OptionLike = None) -> bytes:
    expected = DISCRIMINATOR_LENGTH + 8 + option_size(expires_at, 8)
    w = (
        _writer(Discriminator.DELEGATE_VOTES)
        .u64(amount)
        .option(expires_at, InstructionWriter.u64)
    )
    return _finish(w, expected, Discriminator.DELEGATE_VOTES)


def serialize_deposit_to_treasury_data(amount: int) -> bytes:
    w = _writer(Discriminator.DEPOSIT_TO_TREASURY).u64(amount)
    return _finish(w, DISCRIMINATOR_LENGTH + 8, Discriminator.DEPOSIT_TO_TREASURY)


def serialize_withdraw_from_treasury_data(amount: int) -> bytes:
    w = _writer(Discriminator.WITHDRAW_FROM_TREASURY).u64(amount)
    return _finish(w, DISCRIMINATOR_LENGTH + 8, Discriminator.WITHDRAW_FROM_TREASURY)


def serialize_bare(discriminator: Discriminator) -> bytes:
    """Payload of an operation with no arguments: the discriminator alone."""
    return _finish(_writer(discriminator), DISCRIMINATOR_LENGTH, discriminator)
