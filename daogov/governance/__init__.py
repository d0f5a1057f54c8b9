"""
DAO Governance

Provides:
  - VoteWeightType / DAOConfig / DAO / create_dao         (dao.py)
  - ProposalStatus / Proposal / lifecycle transitions     (proposals.py)
  - VoteType / VoteRecord / voting power strategies       (voting.py)
  - Delegation / delegate / undelegate / accept           (delegation.py)
  - ProposalAction builders                               (actions.py)
  - Treasury create / deposit / withdraw                  (treasury.py)
  - AccountReader / TransactionSender collaborators       (interfaces.py)
"""

from .dao import (
    DAO,
    DAOConfig,
    GovernanceError,
    UnauthorizedError,
    VoteWeightType,
    create_dao,
    parse_duration,
    set_dao_authority,
    update_dao_config,
    validate_dao_config,
)
from .actions import (
    ProposalAction,
    governance_actions,
    token_actions,
    treasury_actions,
)
from .proposals import (
    ExecutionCheck,
    Proposal,
    ProposalLifecycleError,
    ProposalResult,
    ProposalStatus,
    ProposalThresholdError,
    calculate_proposal_result,
    can_execute_proposal,
    cancel_proposal,
    create_proposal,
    execute_proposal,
    finalize_proposal,
    queue_proposal,
    validate_proposal_input,
)
from .voting import (
    InsufficientVotingPowerError,
    NFTStrategy,
    QuadraticStrategy,
    TimeRemaining,
    TimeWeightConfig,
    TimeWeightedStrategy,
    TokenStrategy,
    VoteBreakdown,
    VoteChangeNotAllowedError,
    VoteRecord,
    VoteType,
    VotingClosedError,
    VotingError,
    calculate_nft_voting_power,
    calculate_quadratic_power,
    calculate_time_weighted_power,
    calculate_vote_breakdown,
    calculate_weighted_power,
    cast_vote,
    change_vote,
    get_time_weighted_multiplier,
    get_voting_time_remaining,
    is_voting_open,
    strategy_for,
    withdraw_vote,
)
from .delegation import (
    DELEGATE_ALL,
    Delegation,
    accept_delegation,
    delegate_voting_power,
    get_total_delegated_power,
    undelegate_voting_power,
)
from .treasury import (
    create_treasury,
    deposit_to_treasury,
    withdraw_from_treasury,
)
from .interfaces import AccountReader, TransactionSender

__all__ = [
    # DAO
    "DAO",
    "DAOConfig",
    "GovernanceError",
    "UnauthorizedError",
    "VoteWeightType",
    "create_dao",
    "parse_duration",
    "set_dao_authority",
    "update_dao_config",
    "validate_dao_config",
    # Actions
    "ProposalAction",
    "governance_actions",
    "token_actions",
    "treasury_actions",
    # Proposals
    "ExecutionCheck",
    "Proposal",
    "ProposalLifecycleError",
    "ProposalResult",
    "ProposalStatus",
    "ProposalThresholdError",
    "calculate_proposal_result",
    "can_execute_proposal",
    "cancel_proposal",
    "create_proposal",
    "execute_proposal",
    "finalize_proposal",
    "queue_proposal",
    "validate_proposal_input",
    # Voting
    "InsufficientVotingPowerError",
    "NFTStrategy",
    "QuadraticStrategy",
    "TimeRemaining",
    "TimeWeightConfig",
    "TimeWeightedStrategy",
    "TokenStrategy",
    "VoteBreakdown",
    "VoteChangeNotAllowedError",
    "VoteRecord",
    "VoteType",
    "VotingClosedError",
    "VotingError",
    "calculate_nft_voting_power",
    "calculate_quadratic_power",
    "calculate_time_weighted_power",
    "calculate_vote_breakdown",
    "calculate_weighted_power",
    "cast_vote",
    "change_vote",
    "get_time_weighted_multiplier",
    "get_voting_time_remaining",
    "is_voting_open",
    "strategy_for",
    "withdraw_vote",
    # Delegation
    "DELEGATE_ALL",
    "Delegation",
    "accept_delegation",
    "delegate_voting_power",
    "get_total_delegated_power",
    "undelegate_voting_power",
    # Treasury
    "create_treasury",
    "deposit_to_treasury",
    "withdraw_from_treasury",
    # Collaborators
    "AccountReader",
    "TransactionSender",
]
