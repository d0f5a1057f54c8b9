"""
Governance Client

High-level facade binding the governance operations to a wallet, an
AccountReader and a TransactionSender:

    client = GovernanceClient(reader, sender, wallet)
    dao, sig = client.create_dao("My DAO", mint, now, quorum=10, approval_threshold=60)
    proposal, sig = client.create_proposal(dao, "Fund X", "...", [action], now)
    record, sig = client.vote(proposal.address, "for", now)

Time is always passed in as ``now``. All I/O happens in the collaborators.
"""

from dataclasses import dataclass
from typing import Any, Dict, Iterable, Optional, Sequence, Tuple, Union

from .config.loader import GovernanceConfig
from .crypto.address import PublicKey
from .logger import get_logger
from .programs.instructions import TransactionInstruction
from .governance.actions import ProposalAction, burn, mint, transfer_sol, transfer_token, update_config
from .governance.dao import DAO, GovernanceError, create_dao
from .governance.delegation import (
    Delegation,
    delegate_voting_power,
    get_total_delegated_power,
    undelegate_voting_power,
)
from .governance.interfaces import AccountReader, TransactionSender
from .governance.proposals import (
    ExecutionCheck,
    Proposal,
    ProposalStatus,
    calculate_proposal_result,
    cancel_proposal,
    create_proposal,
    execute_proposal,
)
from .governance.voting import (
    TimeRemaining,
    VoteRecord,
    VoteType,
    calculate_vote_breakdown,
    calculate_weighted_power,
    cast_vote,
    get_voting_time_remaining,
    strategy_for,
)

logger = get_logger(__name__)


@dataclass(frozen=True)
class ProposalStatusResult:
    status: ProposalStatus
    votes_for: int
    votes_against: int
    votes_abstain: int
    quorum_reached: bool
    passing_threshold: bool
    time_remaining: TimeRemaining

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status.name,
            "votesFor": self.votes_for,
            "votesAgainst": self.votes_against,
            "votesAbstain": self.votes_abstain,
            "quorumReached": self.quorum_reached,
            "passingThreshold": self.passing_threshold,
            "timeRemaining": {
                "seconds": self.time_remaining.seconds,
                "formatted": self.time_remaining.formatted,
            },
        }


@dataclass(frozen=True)
class VotingPowerResult:
    own: int
    delegated: int

    @property
    def total(self) -> int:
        return self.own + self.delegated


class GovernanceClient:
    """
    Governance operations signed by *wallet*.

    Every mutating call builds instructions, hands them to the sender and
    returns the sender's signature along with the updated domain object.
    """

    def __init__(
        self,
        reader: AccountReader,
        sender: TransactionSender,
        wallet: PublicKey,
        config: Optional[GovernanceConfig] = None,
    ):
        self.reader = reader
        self.sender = sender
        self.wallet = wallet
        self.config = config or GovernanceConfig()

    # ── helpers ───────────────────────────────────────────────────────

    def _send(self, instructions: Sequence[TransactionInstruction]) -> str:
        signature = self.sender.send(list(instructions))
        logger.debug(f"Sent {len(instructions)} instruction(s): {signature}")
        return signature

    def _resolve_dao(self, dao: Union[PublicKey, DAO]) -> DAO:
        if isinstance(dao, DAO):
            return dao
        found = self.reader.get_dao(dao)
        if found is None:
            raise GovernanceError(f"DAO {dao} not found")
        return found

    def _resolve_proposal(self, proposal: Union[PublicKey, Proposal]) -> Proposal:
        if isinstance(proposal, Proposal):
            return proposal
        found = self.reader.get_proposal(proposal)
        if found is None:
            raise GovernanceError(f"Proposal {proposal} not found")
        return found

    # ── DAO ───────────────────────────────────────────────────────────

    def create_dao(
        self,
        name: str,
        governance_token: PublicKey,
        now: int,
        **settings: Any,
    ) -> Tuple[DAO, str]:
        """Create a DAO; settings the caller omits come from ``[defaults]``."""
        defaults = self.config.defaults
        config = {
            "voting_period": defaults.voting_period,
            "execution_delay": defaults.execution_delay,
            "quorum": defaults.quorum,
            "approval_threshold": defaults.approval_threshold,
        }
        config.update(settings)
        dao, instructions = create_dao(self.wallet, name, governance_token, config, now)
        return dao, self._send(instructions)

    def dao_info(self, dao: Union[PublicKey, DAO]) -> Optional[DAO]:
        """Current DAO state, or None when it does not exist."""
        address = dao.address if isinstance(dao, DAO) else dao
        return self.reader.get_dao(address)

    # ── proposals ─────────────────────────────────────────────────────

    def create_proposal(
        self,
        dao: Union[PublicKey, DAO],
        title: str,
        description: str,
        actions: Sequence[ProposalAction],
        now: int,
    ) -> Tuple[Proposal, str]:
        dao = self._resolve_dao(dao)
        proposer_power = self.reader.get_token_balance(self.wallet, dao.governance_token)
        proposal, instruction = create_proposal(
            dao, self.wallet, title, description, actions, now, proposer_power=proposer_power,
        )
        return proposal, self._send([instruction])

    def proposal_status(
        self,
        proposal: Union[PublicKey, Proposal],
        now: int,
    ) -> Optional[ProposalStatusResult]:
        """
        Tally and timing of a proposal, or None when it does not exist.

        Quorum and approval use the DAO's rules when the DAO can be read;
        otherwise any participation counts as quorum and a simple majority
        as passing.
        """
        if not isinstance(proposal, Proposal):
            proposal = self.reader.get_proposal(proposal)
            if proposal is None:
                return None

        dao = self.reader.get_dao(proposal.dao)
        if dao is not None:
            result = calculate_proposal_result(
                proposal, dao.config.quorum, dao.config.approval_threshold,
                dao.total_voting_power,
            )
            quorum_reached = (
                proposal.total_votes * 100 >= dao.total_voting_power * dao.config.quorum
            )
            passing = result.passed
        else:
            quorum_reached = calculate_vote_breakdown(proposal).total_votes > 0
            passing = proposal.for_votes > proposal.against_votes

        return ProposalStatusResult(
            status=proposal.status,
            votes_for=proposal.for_votes,
            votes_against=proposal.against_votes,
            votes_abstain=proposal.abstain_votes,
            quorum_reached=quorum_reached,
            passing_threshold=passing,
            time_remaining=get_voting_time_remaining(proposal, now),
        )

    def cancel(self, proposal: Union[PublicKey, Proposal], now: int) -> str:
        proposal = self._resolve_proposal(proposal)
        dao = self._resolve_dao(proposal.dao)
        return self._send([cancel_proposal(proposal, dao, self.wallet, now)])

    def execute(
        self,
        proposal: Union[PublicKey, Proposal],
        now: int,
    ) -> Tuple[ExecutionCheck, Optional[str]]:
        """Execute when allowed; a refused check comes back without a signature."""
        proposal = self._resolve_proposal(proposal)
        dao = self._resolve_dao(proposal.dao)
        check, instruction = execute_proposal(proposal, dao, self.wallet, now)
        if instruction is None:
            return check, None
        return check, self._send([instruction])

    # ── voting ────────────────────────────────────────────────────────

    def voting_power(
        self,
        dao: Union[PublicKey, DAO],
        now: int,
        voter: Optional[PublicKey] = None,
        delegations: Iterable[Delegation] = (),
        nft_count: int = 0,
        hold_duration: int = 0,
    ) -> VotingPowerResult:
        """
        Own weight under the DAO's strategy plus live delegations to *voter*.

        A DAO that cannot be found yields zero power.
        """
        voter = voter or self.wallet
        if not isinstance(dao, DAO):
            dao = self.reader.get_dao(dao)
            if dao is None:
                return VotingPowerResult(0, 0)

        balance = self.reader.get_token_balance(voter, dao.governance_token)
        strategy = strategy_for(
            dao.config.vote_weight_type,
            nft_count=nft_count,
            hold_duration=hold_duration,
            time_weight=self.config.time_weight.to_time_weight_config(),
        )
        own = calculate_weighted_power(strategy, balance)

        delegations = list(delegations)
        balances = {
            d.delegator: self.reader.get_token_balance(d.delegator, dao.governance_token)
            for d in delegations
            if d.delegates_all
        }
        delegated = get_total_delegated_power(delegations, voter, now, balances)
        return VotingPowerResult(own, delegated)

    def vote(
        self,
        proposal: Union[PublicKey, Proposal],
        vote_type: Union[VoteType, int, str],
        now: int,
        delegations: Iterable[Delegation] = (),
        nft_count: int = 0,
        hold_duration: int = 0,
    ) -> Tuple[VoteRecord, str]:
        """Cast the wallet's own weight plus delegations made to it."""
        proposal = self._resolve_proposal(proposal)
        dao = self._resolve_dao(proposal.dao)
        power = self.voting_power(
            dao, now, delegations=delegations, nft_count=nft_count, hold_duration=hold_duration,
        ).total
        record, instruction = cast_vote(proposal, dao, self.wallet, vote_type, power, now)
        return record, self._send([instruction])

    # ── delegation ────────────────────────────────────────────────────

    def delegate(
        self,
        dao: Union[PublicKey, DAO],
        to: PublicKey,
        now: int,
        amount: Optional[int] = None,
        expires: Optional[Union[int, str]] = None,
    ) -> Tuple[Delegation, str]:
        dao = self._resolve_dao(dao)
        delegation, instruction = delegate_voting_power(
            dao, self.wallet, to, now, amount=amount, expires=expires,
        )
        return delegation, self._send([instruction])

    def undelegate(self, dao: Union[PublicKey, DAO]) -> str:
        dao = self._resolve_dao(dao)
        return self._send([undelegate_voting_power(dao, self.wallet)])

    # ── actions ───────────────────────────────────────────────────────

    def transfer_from_treasury(
        self,
        to: PublicKey,
        amount: int,
        token: Optional[PublicKey] = None,
    ) -> ProposalAction:
        if token is not None:
            return transfer_token(token, to, amount)
        return transfer_sol(to, amount)

    def update_config(self, new_config: Dict[str, Any]) -> ProposalAction:
        return update_config(new_config)

    def mint_tokens(self, mint_address: PublicKey, recipient: PublicKey, amount: int) -> ProposalAction:
        return mint(mint_address, recipient, amount)

    def burn_tokens(self, mint_address: PublicKey, amount: int) -> ProposalAction:
        return burn(mint_address, amount)
