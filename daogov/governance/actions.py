"""
Proposal Action Builders

Actions are the instructions a proposal runs once executed. They share
the ``{programId, accounts, data}`` shape of a TransactionInstruction:

  - treasury_actions:   transfer_sol, transfer_token, transfer_nft
  - token_actions:      mint, burn, transfer_authority
  - governance_actions: update_config, add_veto_authority, remove_veto_authority
"""

import json
from dataclasses import dataclass, field
from types import SimpleNamespace
from typing import Any, Dict, List, Mapping

from ..crypto.address import PublicKey
from ..crypto.encoding import InstructionWriter
from ..logger import get_logger
from ..programs.instructions import AccountMeta
from ..programs.program import GOVERNANCE_PROGRAM_ID, SYSTEM_PROGRAM_ID, TOKEN_PROGRAM_ID

logger = get_logger(__name__)


# Leading opcode bytes of the target program instruction
OP_SYSTEM_TRANSFER = 2
OP_TOKEN_TRANSFER = 3
OP_TOKEN_SET_AUTHORITY = 6
OP_TOKEN_MINT_TO = 7
OP_TOKEN_BURN = 8
OP_ADD_VETO_AUTHORITY = 1
OP_REMOVE_VETO_AUTHORITY = 2


@dataclass
class ProposalAction:
    """One instruction a proposal will run."""
    program_id: PublicKey
    accounts: List[AccountMeta] = field(default_factory=list)
    data: bytes = b""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "programId": self.program_id.to_base58(),
            "accounts": [a.to_dict() for a in self.accounts],
            "data": self.data.hex(),
        }


def _op_amount(opcode: int, amount: int) -> bytes:
    return InstructionWriter().u8(opcode).u64(amount).getvalue()


# ── Treasury ──────────────────────────────────────────────────────────

def transfer_sol(recipient: PublicKey, amount: int) -> ProposalAction:
    return ProposalAction(
        program_id=SYSTEM_PROGRAM_ID,
        accounts=[AccountMeta(recipient, is_writable=True)],
        data=_op_amount(OP_SYSTEM_TRANSFER, amount),
    )


def transfer_token(mint: PublicKey, recipient: PublicKey, amount: int) -> ProposalAction:
    return ProposalAction(
        program_id=TOKEN_PROGRAM_ID,
        accounts=[AccountMeta(mint), AccountMeta(recipient, is_writable=True)],
        data=_op_amount(OP_TOKEN_TRANSFER, amount),
    )


def transfer_nft(mint: PublicKey, recipient: PublicKey) -> ProposalAction:
    """An NFT transfer is a token transfer of exactly one unit."""
    return ProposalAction(
        program_id=TOKEN_PROGRAM_ID,
        accounts=[AccountMeta(mint), AccountMeta(recipient, is_writable=True)],
        data=_op_amount(OP_TOKEN_TRANSFER, 1),
    )


# ── Token ─────────────────────────────────────────────────────────────

def mint(mint: PublicKey, recipient: PublicKey, amount: int) -> ProposalAction:
    return ProposalAction(
        program_id=TOKEN_PROGRAM_ID,
        accounts=[AccountMeta(mint, is_writable=True), AccountMeta(recipient, is_writable=True)],
        data=_op_amount(OP_TOKEN_MINT_TO, amount),
    )


def burn(mint: PublicKey, amount: int) -> ProposalAction:
    return ProposalAction(
        program_id=TOKEN_PROGRAM_ID,
        accounts=[AccountMeta(mint, is_writable=True)],
        data=_op_amount(OP_TOKEN_BURN, amount),
    )


def transfer_authority(mint: PublicKey, new_authority: PublicKey) -> ProposalAction:
    return ProposalAction(
        program_id=TOKEN_PROGRAM_ID,
        accounts=[AccountMeta(mint, is_writable=True), AccountMeta(new_authority)],
        # authority type 0 = mint authority
        data=bytes([OP_TOKEN_SET_AUTHORITY, 0]),
    )


# ── Governance ────────────────────────────────────────────────────────

def _json_default(value: Any) -> Any:
    if isinstance(value, PublicKey):
        return value.to_base58()
    raise TypeError(f"{type(value).__name__} is not JSON serializable")


def update_config(new_config: Mapping[str, Any]) -> ProposalAction:
    """
    Config change carried as a compact JSON document, not the binary codec.

    The on-chain program's expected layout for this action is unconfirmed,
    so the payload is kept opaque.
    """
    payload = json.dumps(dict(new_config), separators=(",", ":"), default=_json_default)
    logger.debug(f"update_config payload: {payload}")
    return ProposalAction(
        program_id=GOVERNANCE_PROGRAM_ID,
        accounts=[],
        data=payload.encode("utf-8"),
    )


def add_veto_authority(authority: PublicKey) -> ProposalAction:
    return ProposalAction(
        program_id=GOVERNANCE_PROGRAM_ID,
        accounts=[AccountMeta(authority)],
        data=bytes([OP_ADD_VETO_AUTHORITY]),
    )


def remove_veto_authority() -> ProposalAction:
    return ProposalAction(
        program_id=GOVERNANCE_PROGRAM_ID,
        accounts=[],
        data=bytes([OP_REMOVE_VETO_AUTHORITY]),
    )


treasury_actions = SimpleNamespace(
    transfer_sol=transfer_sol,
    transfer_token=transfer_token,
    transfer_nft=transfer_nft,
)

token_actions = SimpleNamespace(
    mint=mint,
    burn=burn,
    transfer_authority=transfer_authority,
)

governance_actions = SimpleNamespace(
    update_config=update_config,
    add_veto_authority=add_veto_authority,
    remove_veto_authority=remove_veto_authority,
)
