"""
Governance program interface: ids, derived addresses, discriminators,
payload serializers and instruction builders.
"""

from .program import (
    GOVERNANCE_PROGRAM_ID,
    SYSTEM_PROGRAM_ID,
    SYSVAR_RENT_ID,
    TOKEN_PROGRAM_ID,
    Discriminator,
    derive,
    discriminator_bytes,
    get_dao_address,
    get_delegation_address,
    get_proposal_address,
    get_treasury_address,
    get_vote_record_address,
)
from .instructions import (
    AccountMeta,
    TransactionInstruction,
    create_accept_delegation_instruction,
    create_cancel_proposal_instruction,
    create_cast_vote_instruction,
    create_change_vote_instruction,
    create_create_dao_instruction,
    create_create_proposal_instruction,
    create_create_treasury_instruction,
    create_delegate_votes_instruction,
    create_deposit_to_treasury_instruction,
    create_execute_proposal_instruction,
    create_set_dao_authority_instruction,
    create_undelegate_instruction,
    create_update_dao_config_instruction,
    create_withdraw_from_treasury_instruction,
    create_withdraw_vote_instruction,
)

__all__ = [
    # Program
    "GOVERNANCE_PROGRAM_ID",
    "SYSTEM_PROGRAM_ID",
    "SYSVAR_RENT_ID",
    "TOKEN_PROGRAM_ID",
    "Discriminator",
    "derive",
    "discriminator_bytes",
    "get_dao_address",
    "get_delegation_address",
    "get_proposal_address",
    "get_treasury_address",
    "get_vote_record_address",
    # Instructions
    "AccountMeta",
    "TransactionInstruction",
    "create_accept_delegation_instruction",
    "create_cancel_proposal_instruction",
    "create_cast_vote_instruction",
    "create_change_vote_instruction",
    "create_create_dao_instruction",
    "create_create_proposal_instruction",
    "create_create_treasury_instruction",
    "create_delegate_votes_instruction",
    "create_deposit_to_treasury_instruction",
    "create_execute_proposal_instruction",
    "create_set_dao_authority_instruction",
    "create_undelegate_instruction",
    "create_update_dao_config_instruction",
    "create_withdraw_from_treasury_instruction",
    "create_withdraw_vote_instruction",
]
