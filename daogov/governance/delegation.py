"""
Vote Delegation

A delegator lends voting power in one DAO to a delegate. ``amount == 0``
means "everything the delegator holds"; an optional ``expires_at`` ends
the delegation without an undelegate instruction.
"""

from dataclasses import dataclass
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple, Union

from ..crypto.address import PublicKey
from ..exceptions import ValidationError
from ..logger import get_logger
from ..programs.instructions import (
    TransactionInstruction,
    create_accept_delegation_instruction,
    create_delegate_votes_instruction,
    create_undelegate_instruction,
)
from ..programs.program import get_delegation_address
from .dao import DAO, parse_duration

logger = get_logger(__name__)

# Amount sentinel: delegate the full balance
DELEGATE_ALL = 0


@dataclass
class Delegation:
    address: PublicKey
    dao: PublicKey
    delegator: PublicKey
    delegate: PublicKey
    amount: int
    timestamp: int
    expires_at: Optional[int] = None
    accepted: bool = False

    @property
    def delegates_all(self) -> bool:
        return self.amount == DELEGATE_ALL

    def is_expired(self, now: int) -> bool:
        return self.expires_at is not None and now >= self.expires_at

    def to_dict(self) -> Dict[str, Any]:
        return {
            "address": self.address.to_base58(),
            "dao": self.dao.to_base58(),
            "delegator": self.delegator.to_base58(),
            "delegate": self.delegate.to_base58(),
            "amount": self.amount,
            "timestamp": self.timestamp,
            "expiresAt": self.expires_at,
            "accepted": self.accepted,
        }


def delegate_voting_power(
    dao: DAO,
    delegator: PublicKey,
    delegate: PublicKey,
    now: int,
    amount: Optional[int] = None,
    expires: Optional[Union[int, str]] = None,
) -> Tuple[Delegation, TransactionInstruction]:
    """
    Delegate *amount* (``None`` or 0 = all) of *delegator*'s power.

    *expires* is a duration (seconds or ``"30 days"``) counted from *now*.
    Re-delegating renews the record at the same derived address.
    """
    if delegator == delegate:
        raise ValidationError("Cannot delegate to yourself")
    amount = amount or DELEGATE_ALL
    if amount < 0:
        raise ValidationError(f"Delegation amount must be >= 0, got {amount}")
    expires_at = None if expires is None else now + parse_duration(expires)

    address = get_delegation_address(dao.address, delegator)
    instruction = create_delegate_votes_instruction(
        delegator, delegate, dao.address, address, amount, expires_at,
    )
    delegation = Delegation(
        address=address,
        dao=dao.address,
        delegator=delegator,
        delegate=delegate,
        amount=amount,
        timestamp=now,
        expires_at=expires_at,
    )
    shown = "all" if delegation.delegates_all else str(amount)
    logger.info(f"{delegator} → {delegate}: delegated {shown} in DAO '{dao.name}'")
    return delegation, instruction


def undelegate_voting_power(dao: DAO, delegator: PublicKey) -> TransactionInstruction:
    address = get_delegation_address(dao.address, delegator)
    logger.info(f"{delegator} undelegated in DAO '{dao.name}'")
    return create_undelegate_instruction(delegator, dao.address, address)


def accept_delegation(delegation: Delegation, delegate: PublicKey) -> TransactionInstruction:
    """The named delegate confirms a delegation made to them."""
    if delegate != delegation.delegate:
        raise ValidationError(f"{delegate} is not the delegate of {delegation.address}")
    instruction = create_accept_delegation_instruction(
        delegate, delegation.delegator, delegation.dao, delegation.address,
    )
    delegation.accepted = True
    return instruction


def get_total_delegated_power(
    delegations: Iterable[Delegation],
    delegate: PublicKey,
    now: int,
    balances: Optional[Mapping[PublicKey, int]] = None,
) -> int:
    """
    Sum the live delegations made to *delegate*.

    A delegate-all record counts the delegator's entry in *balances*, or
    nothing when no balance is known.
    """
    total = 0
    for d in delegations:
        if d.delegate != delegate or d.is_expired(now):
            continue
        if d.delegates_all:
            total += (balances or {}).get(d.delegator, 0)
        else:
            total += d.amount
    return total
