"""
daogov: DAO governance client core

Builds derived addresses and encoded instructions for an on-chain
governance program and tracks proposal, vote and delegation state in
memory. For direct module access, import from submodules:

    from daogov.crypto import PublicKey, find_program_address
    from daogov.governance import create_dao, cast_vote
    from daogov.client import GovernanceClient
"""

__version__ = "0.1.0"


# Lazy imports keep `import daogov` from configuring logging eagerly
def __getattr__(name):
    if name == 'GovernanceClient':
        from .client import GovernanceClient
        return GovernanceClient
    elif name == 'PublicKey':
        from .crypto.address import PublicKey
        return PublicKey
    elif name == 'load_config':
        from .config import load_config
        return load_config
    raise AttributeError(f"module 'daogov' has no attribute {name!r}")

__all__ = ['GovernanceClient', 'PublicKey', 'load_config']
