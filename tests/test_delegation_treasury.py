"""
Delegation, Treasury & Proposal Action Test Suite

Coverage:
  - Delegation: amount sentinel, expiry, self-delegation, acceptance,
    delegated power totals
  - Treasury: create, deposit, proposal-authorized withdrawal
  - Proposal action builders
"""

import json
import os
import sys

import pytest

# ── Path setup ────────────────────────────────────────────────────────
ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from daogov.crypto.address import PublicKey
from daogov.crypto.encoding import InstructionReader, Some
from daogov.exceptions import ValidationError
from daogov.governance.actions import (
    governance_actions,
    token_actions,
    transfer_sol,
    treasury_actions,
)
from daogov.governance.dao import create_dao
from daogov.governance.delegation import (
    DELEGATE_ALL,
    accept_delegation,
    delegate_voting_power,
    get_total_delegated_power,
    undelegate_voting_power,
)
from daogov.governance.proposals import ProposalStatus, create_proposal
from daogov.governance.treasury import (
    create_treasury,
    deposit_to_treasury,
    withdraw_from_treasury,
)
from daogov.programs.program import (
    GOVERNANCE_PROGRAM_ID,
    SYSTEM_PROGRAM_ID,
    TOKEN_PROGRAM_ID,
    Discriminator,
    discriminator_bytes,
    get_delegation_address,
)

NOW = 1_700_000_000
DAY = 86400


def key(n: int) -> PublicKey:
    return PublicKey(bytes([n]) * 32)


ALICE = key(5)
BOB = key(6)
CAROL = key(7)


def make_dao(name="TestDAO"):
    dao, _ = create_dao(
        key(1), name, key(2), {"voting_period": "5 days", "quorum": 10, "approval_threshold": 50}, NOW,
    )
    return dao


# ══════════════════════════════════════════════════════════════════════
#  DELEGATION
# ══════════════════════════════════════════════════════════════════════

class TestDelegate:

    def test_delegate_all(self):
        dao = make_dao()
        delegation, ix = delegate_voting_power(dao, ALICE, BOB, NOW)
        assert delegation.amount == DELEGATE_ALL
        assert delegation.delegates_all
        assert delegation.expires_at is None
        assert delegation.address == get_delegation_address(dao.address, ALICE)
        assert len(ix.data) == 8 + 8 + 1
        assert ix.keys[3].pubkey == delegation.address

    def test_amount_and_expiry(self):
        dao = make_dao()
        delegation, ix = delegate_voting_power(dao, ALICE, BOB, NOW, amount=500, expires="30 days")
        assert delegation.expires_at == NOW + 30 * DAY
        r = InstructionReader(ix.data, offset=8)
        assert r.u64() == 500
        assert r.option(InstructionReader.u64) == Some(NOW + 30 * DAY)

    def test_self_delegation(self):
        with pytest.raises(ValidationError, match="yourself"):
            delegate_voting_power(make_dao(), ALICE, ALICE, NOW)

    def test_bad_expiry(self):
        with pytest.raises(ValidationError):
            delegate_voting_power(make_dao(), ALICE, BOB, NOW, expires="someday")

    def test_redelegation_same_address(self):
        dao = make_dao()
        first, _ = delegate_voting_power(dao, ALICE, BOB, NOW)
        second, _ = delegate_voting_power(dao, ALICE, CAROL, NOW + 1)
        assert first.address == second.address

    def test_expiry_boundary(self):
        delegation, _ = delegate_voting_power(make_dao(), ALICE, BOB, NOW, expires=100)
        assert not delegation.is_expired(NOW + 99)
        assert delegation.is_expired(NOW + 100)

    def test_undelegate(self):
        dao = make_dao()
        ix = undelegate_voting_power(dao, ALICE)
        assert ix.data == discriminator_bytes(Discriminator.UNDELEGATE)
        assert ix.keys[2].pubkey == get_delegation_address(dao.address, ALICE)

    def test_accept(self):
        delegation, _ = delegate_voting_power(make_dao(), ALICE, BOB, NOW)
        ix = accept_delegation(delegation, BOB)
        assert delegation.accepted
        assert ix.keys[0].pubkey == BOB and ix.keys[0].is_signer
        assert ix.data == discriminator_bytes(Discriminator.ACCEPT_DELEGATION)

    def test_accept_by_wrong_delegate(self):
        delegation, _ = delegate_voting_power(make_dao(), ALICE, BOB, NOW)
        with pytest.raises(ValidationError):
            accept_delegation(delegation, CAROL)
        assert not delegation.accepted


class TestDelegatedPower:

    def test_sums_live_delegations(self):
        dao = make_dao()
        d1, _ = delegate_voting_power(dao, ALICE, CAROL, NOW, amount=100)
        d2, _ = delegate_voting_power(dao, BOB, CAROL, NOW)
        d3, _ = delegate_voting_power(dao, key(8), CAROL, NOW, amount=50, expires=10)
        d4, _ = delegate_voting_power(dao, key(9), ALICE, NOW, amount=999)
        balances = {BOB: 300}
        assert get_total_delegated_power([d1, d2, d3, d4], CAROL, NOW + 5, balances) == 450
        assert get_total_delegated_power([d1, d2, d3, d4], CAROL, NOW + 10, balances) == 400

    def test_delegate_all_without_balance(self):
        d, _ = delegate_voting_power(make_dao(), ALICE, BOB, NOW)
        assert get_total_delegated_power([d], BOB, NOW) == 0

    def test_to_dict(self):
        d, _ = delegate_voting_power(make_dao(), ALICE, BOB, NOW, amount=1)
        assert d.to_dict()["delegate"] == BOB.to_base58()


# ══════════════════════════════════════════════════════════════════════
#  TREASURY
# ══════════════════════════════════════════════════════════════════════

class TestTreasury:

    def _queued_proposal(self, dao):
        proposal, _ = create_proposal(dao, ALICE, "Pay", "", [transfer_sol(BOB, 5)], NOW)
        proposal.transition_to(ProposalStatus.SUCCEEDED)
        proposal.transition_to(ProposalStatus.QUEUED)
        return proposal

    def test_create(self):
        dao = make_dao()
        ix = create_treasury(dao, dao.authority)
        assert ix.keys[2].pubkey == dao.treasury
        assert ix.data == discriminator_bytes(Discriminator.CREATE_TREASURY)

    def test_deposit(self):
        dao = make_dao()
        ix = deposit_to_treasury(dao, ALICE, key(20), key(21), 1000)
        assert ix.data[8:] == (1000).to_bytes(8, "little")
        assert ix.keys[2].pubkey == dao.treasury
        assert ix.keys[-1].pubkey == TOKEN_PROGRAM_ID

    @pytest.mark.parametrize("amount", [0, -1])
    def test_deposit_non_positive(self, amount):
        with pytest.raises(ValidationError):
            deposit_to_treasury(make_dao(), ALICE, key(20), key(21), amount)

    def test_withdraw_under_queued_proposal(self):
        dao = make_dao()
        proposal = self._queued_proposal(dao)
        ix = withdraw_from_treasury(dao, dao.authority, proposal, key(21), key(22), 10)
        assert ix.keys[2].pubkey == proposal.address
        assert ix.data[:8] == discriminator_bytes(Discriminator.WITHDRAW_FROM_TREASURY)

    def test_withdraw_requires_passed_proposal(self):
        dao = make_dao()
        proposal, _ = create_proposal(dao, ALICE, "Pay", "", [transfer_sol(BOB, 5)], NOW)
        with pytest.raises(ValidationError, match="ACTIVE"):
            withdraw_from_treasury(dao, dao.authority, proposal, key(21), key(22), 10)

    def test_withdraw_foreign_proposal(self):
        dao, other = make_dao(), make_dao("OtherDAO")
        proposal = self._queued_proposal(other)
        with pytest.raises(ValidationError, match="another DAO"):
            withdraw_from_treasury(dao, dao.authority, proposal, key(21), key(22), 10)


# ══════════════════════════════════════════════════════════════════════
#  ACTIONS
# ══════════════════════════════════════════════════════════════════════

class TestActions:

    def test_transfer_sol(self):
        action = treasury_actions.transfer_sol(BOB, 5)
        assert action.program_id == SYSTEM_PROGRAM_ID
        assert action.data == b"\x02" + (5).to_bytes(8, "little")
        assert action.accounts[0].is_writable

    def test_transfer_token_and_nft(self):
        token = treasury_actions.transfer_token(key(30), BOB, 7)
        nft = treasury_actions.transfer_nft(key(30), BOB)
        assert token.program_id == nft.program_id == TOKEN_PROGRAM_ID
        assert token.data[0] == nft.data[0] == 3
        assert nft.data[1:] == (1).to_bytes(8, "little")

    def test_token_actions(self):
        assert token_actions.mint(key(30), BOB, 9).data[0] == 7
        assert token_actions.burn(key(30), 9).data[0] == 8
        assert token_actions.transfer_authority(key(30), BOB).data == bytes([6, 0])

    def test_update_config_is_compact_json(self):
        action = governance_actions.update_config({"quorum": 20, "vetoAuthority": BOB})
        assert action.program_id == GOVERNANCE_PROGRAM_ID
        assert action.data == b'{"quorum":20,"vetoAuthority":"' + BOB.to_base58().encode() + b'"}'
        assert json.loads(action.data) == {"quorum": 20, "vetoAuthority": BOB.to_base58()}

    def test_update_config_rejects_unserializable(self):
        with pytest.raises(TypeError):
            governance_actions.update_config({"bad": object()})

    def test_veto_authority(self):
        add = governance_actions.add_veto_authority(BOB)
        assert add.data == b"\x01"
        assert add.accounts[0].pubkey == BOB
        assert governance_actions.remove_veto_authority().data == b"\x02"

    def test_to_dict(self):
        d = transfer_sol(BOB, 5).to_dict()
        assert d["programId"] == SYSTEM_PROGRAM_ID.to_base58()
        assert d["accounts"][0]["isWritable"] is True
