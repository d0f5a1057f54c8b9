"""
Collaborator interfaces.

The governance core never touches the network. Reading account state
and submitting instructions are delegated to these two abstractions.
"""

from abc import ABC, abstractmethod
from typing import Optional, Sequence

from ..crypto.address import PublicKey
from ..programs.instructions import TransactionInstruction
from .dao import DAO
from .proposals import Proposal


class AccountReader(ABC):
    """Read-only view of ledger state. Absence is ``None`` or 0, never an error."""

    @abstractmethod
    def get_dao(self, address: PublicKey) -> Optional[DAO]:
        ...

    @abstractmethod
    def get_proposal(self, address: PublicKey) -> Optional[Proposal]:
        ...

    @abstractmethod
    def get_token_balance(self, owner: PublicKey, mint: PublicKey) -> int:
        ...


class TransactionSender(ABC):
    """Signs and submits instructions; returns a transaction signature."""

    @abstractmethod
    def send(self, instructions: Sequence[TransactionInstruction]) -> str:
        ...
