"""
DAO Treasury

Treasury account creation, deposits and proposal-authorized withdrawals.
"""

from ..crypto.address import PublicKey
from ..exceptions import ValidationError
from ..logger import get_logger
from ..programs.instructions import (
    TransactionInstruction,
    create_create_treasury_instruction,
    create_deposit_to_treasury_instruction,
    create_withdraw_from_treasury_instruction,
)
from .dao import DAO
from .proposals import Proposal, ProposalStatus

logger = get_logger(__name__)


def _check_amount(amount: int) -> None:
    if amount <= 0:
        raise ValidationError(f"Amount must be positive, got {amount}")


def create_treasury(dao: DAO, authority: PublicKey) -> TransactionInstruction:
    return create_create_treasury_instruction(authority, dao.address, dao.treasury)


def deposit_to_treasury(
    dao: DAO,
    depositor: PublicKey,
    depositor_token_account: PublicKey,
    treasury_token_account: PublicKey,
    amount: int,
) -> TransactionInstruction:
    _check_amount(amount)
    logger.info(f"Deposit of {amount} into treasury of DAO '{dao.name}' by {depositor}")
    return create_deposit_to_treasury_instruction(
        depositor, dao.address, dao.treasury,
        depositor_token_account, treasury_token_account, amount,
    )


def withdraw_from_treasury(
    dao: DAO,
    authority: PublicKey,
    proposal: Proposal,
    treasury_token_account: PublicKey,
    recipient_token_account: PublicKey,
    amount: int,
) -> TransactionInstruction:
    """
    Withdraw under the authority of a passed proposal.

    The proposal must belong to *dao* and be queued or executed.
    """
    _check_amount(amount)
    if proposal.dao != dao.address:
        raise ValidationError(f"Proposal #{proposal.index} belongs to another DAO")
    if proposal.status not in (ProposalStatus.QUEUED, ProposalStatus.EXECUTED):
        raise ValidationError(
            f"Proposal #{proposal.index} is {proposal.status.name}; "
            f"withdrawals need a queued or executed proposal"
        )
    logger.info(
        f"Withdrawal of {amount} from treasury of DAO '{dao.name}' "
        f"under proposal #{proposal.index}"
    )
    return create_withdraw_from_treasury_instruction(
        authority, dao.address, proposal.address, dao.treasury,
        treasury_token_account, recipient_token_account, amount,
    )
