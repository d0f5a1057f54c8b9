"""
Governance Instruction Builders

Raw TransactionInstruction builders for all 15 governance program
operations. Each builder pins the account order and the signer/writable
flags the program expects; the payload comes from the matching
serializer in ``program``.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List

from ..crypto.address import PublicKey
from ..crypto.encoding import OptionLike
from .program import (
    Discriminator,
    GOVERNANCE_PROGRAM_ID,
    SYSTEM_PROGRAM_ID,
    SYSVAR_RENT_ID,
    TOKEN_PROGRAM_ID,
    serialize_bare,
    serialize_cast_vote_data,
    serialize_change_vote_data,
    serialize_create_dao_data,
    serialize_create_proposal_data,
    serialize_delegate_votes_data,
    serialize_deposit_to_treasury_data,
    serialize_set_dao_authority_data,
    serialize_update_dao_config_data,
    serialize_withdraw_from_treasury_data,
)


@dataclass(frozen=True)
class AccountMeta:
    """One account reference inside an instruction."""
    pubkey: PublicKey
    is_signer: bool = False
    is_writable: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            'pubkey': self.pubkey.to_base58(),
            'isSigner': self.is_signer,
            'isWritable': self.is_writable,
        }


@dataclass
class TransactionInstruction:
    """A program id, an ordered account list and an opaque payload."""
    program_id: PublicKey
    keys: List[AccountMeta] = field(default_factory=list)
    data: bytes = b''

    def to_dict(self) -> Dict[str, Any]:
        return {
            'programId': self.program_id.to_base58(),
            'keys': [k.to_dict() for k in self.keys],
            'data': self.data.hex(),
        }


def _signer(key: PublicKey, writable: bool = False) -> AccountMeta:
    return AccountMeta(key, is_signer=True, is_writable=writable)


def _writable(key: PublicKey) -> AccountMeta:
    return AccountMeta(key, is_writable=True)


def _readonly(key: PublicKey) -> AccountMeta:
    return AccountMeta(key)


def _governance(keys: List[AccountMeta], data: bytes) -> TransactionInstruction:
    return TransactionInstruction(program_id=GOVERNANCE_PROGRAM_ID, keys=keys, data=data)


# ══════════════════════════════════════════════════════════════════════
#  DAO
# ══════════════════════════════════════════════════════════════════════

def create_create_dao_instruction(
    authority: PublicKey,
    dao: PublicKey,
    governance_token: PublicKey,
    treasury: PublicKey,
    name: str,
    voting_period: int,
    quorum: int,
    approval_threshold: int,
    execution_delay: int,
    min_proposal_threshold: int,
    vote_weight_type: int,
    allow_early_execution: bool,
    allow_vote_change: bool,
) -> TransactionInstruction:
    return _governance(
        [
            _signer(authority, writable=True),
            _writable(dao),
            _readonly(governance_token),
            _writable(treasury),
            _readonly(SYSTEM_PROGRAM_ID),
            _readonly(SYSVAR_RENT_ID),
        ],
        serialize_create_dao_data(
            name, voting_period, quorum, approval_threshold,
            execution_delay, min_proposal_threshold, vote_weight_type,
            allow_early_execution, allow_vote_change,
        ),
    )


def create_update_dao_config_instruction(
    authority: PublicKey,
    dao: PublicKey,
    voting_period: OptionLike = None,
    quorum: OptionLike = None,
    approval_threshold: OptionLike = None,
    execution_delay: OptionLike = None,
) -> TransactionInstruction:
    return _governance(
        [_signer(authority), _writable(dao)],
        serialize_update_dao_config_data(voting_period, quorum, approval_threshold, execution_delay),
    )


def create_set_dao_authority_instruction(
    authority: PublicKey,
    dao: PublicKey,
    new_authority: PublicKey,
) -> TransactionInstruction:
    return _governance(
        [_signer(authority), _writable(dao), _readonly(new_authority)],
        serialize_set_dao_authority_data(new_authority),
    )


# ══════════════════════════════════════════════════════════════════════
#  PROPOSALS
# ══════════════════════════════════════════════════════════════════════

def create_create_proposal_instruction(
    proposer: PublicKey,
    dao: PublicKey,
    proposal: PublicKey,
    title: str,
    description: str,
    actions_count: int,
) -> TransactionInstruction:
    return _governance(
        [
            _signer(proposer, writable=True),
            _writable(dao),
            _writable(proposal),
            _readonly(SYSTEM_PROGRAM_ID),
        ],
        serialize_create_proposal_data(title, description, actions_count),
    )


def create_cancel_proposal_instruction(
    authority: PublicKey,
    dao: PublicKey,
    proposal: PublicKey,
) -> TransactionInstruction:
    return _governance(
        [_signer(authority), _readonly(dao), _writable(proposal)],
        serialize_bare(Discriminator.CANCEL_PROPOSAL),
    )


def create_execute_proposal_instruction(
    executor: PublicKey,
    dao: PublicKey,
    proposal: PublicKey,
    treasury: PublicKey,
) -> TransactionInstruction:
    return _governance(
        [
            _signer(executor, writable=True),
            _writable(dao),
            _writable(proposal),
            _writable(treasury),
        ],
        serialize_bare(Discriminator.EXECUTE_PROPOSAL),
    )


# ══════════════════════════════════════════════════════════════════════
#  VOTING
# ══════════════════════════════════════════════════════════════════════

def create_cast_vote_instruction(
    voter: PublicKey,
    proposal: PublicKey,
    vote_record: PublicKey,
    dao: PublicKey,
    governance_token: PublicKey,
    vote_type: int,
) -> TransactionInstruction:
    return _governance(
        [
            _signer(voter, writable=True),
            _writable(proposal),
            _writable(vote_record),
            _readonly(dao),
            _readonly(governance_token),
            _readonly(SYSTEM_PROGRAM_ID),
        ],
        serialize_cast_vote_data(vote_type),
    )


def create_change_vote_instruction(
    voter: PublicKey,
    proposal: PublicKey,
    vote_record: PublicKey,
    dao: PublicKey,
    new_vote_type: int,
) -> TransactionInstruction:
    return _governance(
        [_signer(voter), _writable(proposal), _writable(vote_record), _readonly(dao)],
        serialize_change_vote_data(new_vote_type),
    )


def create_withdraw_vote_instruction(
    voter: PublicKey,
    proposal: PublicKey,
    vote_record: PublicKey,
    dao: PublicKey,
) -> TransactionInstruction:
    return _governance(
        [
            _signer(voter, writable=True),
            _writable(proposal),
            _writable(vote_record),
            _readonly(dao),
        ],
        serialize_bare(Discriminator.WITHDRAW_VOTE),
    )


# ══════════════════════════════════════════════════════════════════════
#  DELEGATION
# ══════════════════════════════════════════════════════════════════════

def create_delegate_votes_instruction(
    delegator: PublicKey,
    delegate: PublicKey,
    dao: PublicKey,
    delegation_account: PublicKey,
    amount: int,
    expires_at: OptionLike = None,
) -> TransactionInstruction:
    return _governance(
        [
            _signer(delegator, writable=True),
            _readonly(delegate),
            _readonly(dao),
            _writable(delegation_account),
            _readonly(SYSTEM_PROGRAM_ID),
        ],
        serialize_delegate_votes_data(amount, expires_at),
    )


def create_undelegate_instruction(
    delegator: PublicKey,
    dao: PublicKey,
    delegation_account: PublicKey,
) -> TransactionInstruction:
    return _governance(
        [_signer(delegator, writable=True), _readonly(dao), _writable(delegation_account)],
        serialize_bare(Discriminator.UNDELEGATE),
    )


def create_accept_delegation_instruction(
    delegate: PublicKey,
    delegator: PublicKey,
    dao: PublicKey,
    delegation_account: PublicKey,
) -> TransactionInstruction:
    return _governance(
        [
            _signer(delegate),
            _readonly(delegator),
            _readonly(dao),
            _writable(delegation_account),
        ],
        serialize_bare(Discriminator.ACCEPT_DELEGATION),
    )


# ══════════════════════════════════════════════════════════════════════
#  TREASURY
# ══════════════════════════════════════════════════════════════════════

def create_create_treasury_instruction(
    authority: PublicKey,
    dao: PublicKey,
    treasury: PublicKey,
) -> TransactionInstruction:
    return _governance(
        [
            _signer(authority, writable=True),
            _readonly(dao),
            _writable(treasury),
            _readonly(SYSTEM_PROGRAM_ID),
        ],
        serialize_bare(Discriminator.CREATE_TREASURY),
    )


def create_deposit_to_treasury_instruction(
    depositor: PublicKey,
    dao: PublicKey,
    treasury: PublicKey,
    depositor_token_account: PublicKey,
    treasury_token_account: PublicKey,
    amount: int,
) -> TransactionInstruction:
    return _governance(
        [
            _signer(depositor, writable=True),
            _readonly(dao),
            _writable(treasury),
            _writable(depositor_token_account),
            _writable(treasury_token_account),
            _readonly(TOKEN_PROGRAM_ID),
        ],
        serialize_deposit_to_treasury_data(amount),
    )


def create_withdraw_from_treasury_instruction(
    authority: PublicKey,
    dao: PublicKey,
    proposal: PublicKey,
    treasury: PublicKey,
    treasury_token_account: PublicKey,
    recipient_token_account: PublicKey,
    amount: int,
) -> TransactionInstruction:
    return _governance(
        [
            _signer(authority),
            _readonly(dao),
            _readonly(proposal),
            _writable(treasury),
            _writable(treasury_token_account),
            _writable(recipient_token_account),
            _readonly(TOKEN_PROGRAM_ID),
        ],
        serialize_withdraw_from_treasury_data(amount),
    )
