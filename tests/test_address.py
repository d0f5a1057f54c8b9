"""
Address Derivation Test Suite

Coverage:
  - PublicKey construction, base58 round trip, equality and hashing
  - Ed25519 curve membership
  - Program-derived addresses: seed limits, bump search, determinism
  - Governance seed recipes

Run with:
    pytest tests/test_address.py -v
"""

import os
import sys

import pytest
from hypothesis import assume, given, settings, strategies as st

# ── Path setup ────────────────────────────────────────────────────────
ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from daogov.crypto.address import (
    PublicKey,
    create_program_address,
    find_program_address,
    is_on_curve,
    to_public_key,
)
from daogov.crypto.hashing import sha256, sha256_concat, sha256_hex
from daogov.exceptions import InvalidAddressError, InvalidSeedsError
from daogov.programs.program import (
    GOVERNANCE_PROGRAM_ID,
    SYSTEM_PROGRAM_ID,
    derive,
    get_dao_address,
    get_delegation_address,
    get_proposal_address,
    get_treasury_address,
    get_vote_record_address,
)


# Ed25519 base point, compressed
BASE_POINT = bytes.fromhex(
    "5866666666666666666666666666666666666666666666666666666666666666"
)


def key(n: int) -> PublicKey:
    return PublicKey(bytes([n]) * 32)


# ══════════════════════════════════════════════════════════════════════
#  HASHING
# ══════════════════════════════════════════════════════════════════════

class TestHashing:

    def test_sha256_empty(self):
        assert sha256_hex(b"") == (
            "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"
        )

    def test_string_is_hashed_as_utf8(self):
        assert sha256("abc") == sha256(b"abc")

    def test_concat_matches_joined(self):
        parts = [b"dao", b"\x01" * 32, b"name"]
        assert sha256_concat(parts) == sha256(b"".join(parts))


# ══════════════════════════════════════════════════════════════════════
#  PUBLIC KEY
# ══════════════════════════════════════════════════════════════════════

class TestPublicKey:

    def test_from_bytes(self):
        pk = PublicKey(b"\x07" * 32)
        assert pk.to_bytes() == b"\x07" * 32
        assert bytes(pk) == b"\x07" * 32

    def test_base58_round_trip(self):
        pk = key(9)
        assert PublicKey(pk.to_base58()) == pk
        assert str(pk) == pk.to_base58()

    def test_system_program_is_all_zero(self):
        assert SYSTEM_PROGRAM_ID == PublicKey.default()
        assert PublicKey.default().to_base58() == "1" * 32

    def test_governance_program_id_decodes_to_32_bytes(self):
        assert len(GOVERNANCE_PROGRAM_ID.to_bytes()) == 32
        assert GOVERNANCE_PROGRAM_ID.to_base58() == "Gov1111111111111111111111111111111111111111"

    def test_wrong_length_raises(self):
        with pytest.raises(InvalidAddressError, match="32 bytes"):
            PublicKey(b"\x01" * 31)

    def test_invalid_base58_raises(self):
        with pytest.raises(InvalidAddressError):
            PublicKey("0OIl")

    def test_unsupported_type_raises(self):
        with pytest.raises(InvalidAddressError):
            PublicKey(12345)

    def test_equality_and_hash(self):
        assert key(1) == PublicKey(b"\x01" * 32)
        assert key(1) != key(2)
        assert len({key(1), PublicKey(key(1)), key(2)}) == 2

    def test_to_public_key_passthrough(self):
        pk = key(3)
        assert to_public_key(pk) is pk
        assert to_public_key(pk.to_base58()) == pk

    def test_repr(self):
        assert repr(key(4)).startswith("PublicKey(")


# ══════════════════════════════════════════════════════════════════════
#  CURVE
# ══════════════════════════════════════════════════════════════════════

class TestIsOnCurve:

    def test_base_point_on_curve(self):
        assert is_on_curve(BASE_POINT) is True

    def test_identity_on_curve(self):
        # y = 1 gives x = 0
        assert is_on_curve(b"\x01" + b"\x00" * 31) is True

    def test_zero_key_on_curve(self):
        assert is_on_curve(bytes(32)) is True

    def test_sign_bit_ignored(self):
        flipped = BASE_POINT[:31] + bytes([BASE_POINT[31] | 0x80])
        assert is_on_curve(flipped) is True

    def test_wrong_length_raises(self):
        with pytest.raises(InvalidAddressError):
            is_on_curve(b"\x00" * 31)


# ══════════════════════════════════════════════════════════════════════
#  PROGRAM-DERIVED ADDRESSES
# ══════════════════════════════════════════════════════════════════════

class TestFindProgramAddress:

    def test_result_is_off_curve(self):
        address, bump = find_program_address([b"treasury", key(1).to_bytes()], GOVERNANCE_PROGRAM_ID)
        assert not address.is_on_curve()
        assert 1 <= bump <= 255

    def test_bump_reproduces_address(self):
        seeds = [b"dao", key(2).to_bytes(), b"MyDAO"]
        address, bump = find_program_address(seeds, GOVERNANCE_PROGRAM_ID)
        assert create_program_address(seeds + [bytes([bump])], GOVERNANCE_PROGRAM_ID) == address

    def test_higher_bumps_are_on_curve(self):
        seeds = [b"vote", key(3).to_bytes(), key(4).to_bytes()]
        _, bump = find_program_address(seeds, GOVERNANCE_PROGRAM_ID)
        for higher in range(bump + 1, 256):
            with pytest.raises(InvalidSeedsError):
                create_program_address(seeds + [bytes([higher])], GOVERNANCE_PROGRAM_ID)

    def test_program_id_changes_address(self):
        seeds = [b"treasury", key(5).to_bytes()]
        a, _ = find_program_address(seeds, GOVERNANCE_PROGRAM_ID)
        b, _ = find_program_address(seeds, key(6))
        assert a != b

    def test_seed_too_long_raises(self):
        with pytest.raises(InvalidSeedsError, match="max is 32"):
            find_program_address([b"x" * 33], GOVERNANCE_PROGRAM_ID)

    def test_too_many_seeds_raises(self):
        # 16 seeds plus the bump is one too many
        with pytest.raises(InvalidSeedsError, match="At most 16"):
            find_program_address([b"s"] * 16, GOVERNANCE_PROGRAM_ID)

    def test_fifteen_seeds_allowed(self):
        address, _ = find_program_address([b"s"] * 15, GOVERNANCE_PROGRAM_ID)
        assert len(address.to_bytes()) == 32

    @settings(max_examples=25, deadline=None)
    @given(st.lists(st.binary(max_size=32), max_size=4))
    def test_deterministic(self, seeds):
        assert find_program_address(seeds, GOVERNANCE_PROGRAM_ID) == \
            find_program_address(list(seeds), GOVERNANCE_PROGRAM_ID)

    @settings(max_examples=25, deadline=None)
    @given(
        st.binary(max_size=32),
        st.binary(min_size=8, max_size=8),
        st.binary(min_size=8, max_size=8),
    )
    def test_same_prefix_different_suffix(self, prefix, a, b):
        assume(a != b)
        assert derive([prefix, a]) != derive([prefix, b])

    @settings(max_examples=25, deadline=None)
    @given(st.binary(min_size=32, max_size=32), st.binary(min_size=32, max_size=32))
    def test_distinct_daos_have_distinct_treasuries(self, a, b):
        assume(a != b)
        assert get_treasury_address(PublicKey(a)) != get_treasury_address(PublicKey(b))


# ══════════════════════════════════════════════════════════════════════
#  SEED RECIPES
# ══════════════════════════════════════════════════════════════════════

class TestSeedRecipes:

    def test_dao_address_recipe(self):
        authority = key(1)
        expected = derive([b"dao", authority.to_bytes(), "TestDAO".encode()])
        assert get_dao_address(authority, "TestDAO") == expected

    def test_dao_address_depends_on_name(self):
        assert get_dao_address(key(1), "A") != get_dao_address(key(1), "B")

    def test_dao_address_depends_on_authority(self):
        assert get_dao_address(key(1), "A") != get_dao_address(key(2), "A")

    def test_dao_name_over_32_bytes_rejected(self):
        with pytest.raises(InvalidSeedsError):
            get_dao_address(key(1), "x" * 33)

    def test_dao_name_multibyte_counts_bytes(self):
        # 11 characters, 33 UTF-8 bytes
        with pytest.raises(InvalidSeedsError):
            get_dao_address(key(1), "€" * 11)

    def test_proposal_index_is_u64_le(self):
        dao = key(7)
        expected = derive([b"proposal", dao.to_bytes(), (258).to_bytes(8, "little")])
        assert get_proposal_address(dao, 258) == expected

    def test_proposal_addresses_unique_per_index(self):
        dao = key(7)
        addresses = {get_proposal_address(dao, i) for i in range(5)}
        assert len(addresses) == 5

    def test_proposal_index_out_of_range(self):
        from daogov.exceptions import EncodingError
        with pytest.raises(EncodingError):
            get_proposal_address(key(7), -1)

    def test_vote_record_recipe(self):
        proposal, voter = key(8), key(9)
        expected = derive([b"vote", proposal.to_bytes(), voter.to_bytes()])
        assert get_vote_record_address(proposal, voter) == expected

    def test_delegation_recipe(self):
        dao, delegator = key(10), key(11)
        expected = derive([b"delegation", dao.to_bytes(), delegator.to_bytes()])
        assert get_delegation_address(dao, delegator) == expected

    def test_treasury_recipe(self):
        dao = key(12)
        assert get_treasury_address(dao) == derive([b"treasury", dao.to_bytes()])

    def test_recipes_do_not_collide(self):
        a, b = key(13), key(14)
        addresses = {
            get_vote_record_address(a, b),
            get_delegation_address(a, b),
            get_treasury_address(a),
            get_proposal_address(a, 0),
        }
        assert len(addresses) == 4
