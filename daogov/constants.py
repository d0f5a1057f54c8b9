"""
daogov Constants

This module consolidates the protocol constants and environment configuration
used throughout the codebase. Constants are organized by category for easy
reference and maintenance.
"""
import ast
from dotenv import dotenv_values

# =============================================================================
# ENVIRONMENT CONFIGURATION
# =============================================================================
# Load environment variables once at module import
_config = dotenv_values(".env")

LOGGER_DEFAULTS = {
    'LOG_LEVEL':                       'INFO',
    'LOG_FORMAT':                      '%(asctime)s - %(levelname)s - %(name)s - %(message)s',
    'LOG_DATE_FORMAT':                 '%Y-%m-%dT%H:%M:%S',
    'LOG_CONSOLE_HIGHLIGHTING':        'True',
    'LOG_FILE_OUTPUT':                 'False',
}

LOG_MAX_FILE_SIZE = 10 * 1024 * 1024 # 10MB
LOG_BACKUP_COUNT = 5


# WARNING: THE PROTOCOL VALUES BELOW ARE PART OF THE WIRE CONTRACT WITH THE ON-CHAIN
# GOVERNANCE PROGRAM. CHANGING A SEED PREFIX, A PROGRAM ID OR A DISCRIMINATOR PRODUCES
# ADDRESSES AND INSTRUCTIONS THE DEPLOYED PROGRAM WILL REJECT.

# ==================================================================================
# PROGRAM IDS
# ==================================================================================
GOVERNANCE_PROGRAM_ID_B58 = 'Gov1111111111111111111111111111111111111111'
SYSTEM_PROGRAM_ID_B58 = '11111111111111111111111111111111'
TOKEN_PROGRAM_ID_B58 = 'TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA'
SYSVAR_RENT_ID_B58 = 'SysvarRent111111111111111111111111111111111'


# ==================================================================================
# DERIVED ADDRESS PARAMETERS
# ==================================================================================
PUBLIC_KEY_LENGTH = 32
MAX_SEED_LENGTH = 32
MAX_SEEDS = 16
PDA_MARKER = b'ProgramDerivedAddress'

SEED_DAO = b'dao'
SEED_PROPOSAL = b'proposal'
SEED_VOTE = b'vote'
SEED_DELEGATION = b'delegation'
SEED_TREASURY = b'treasury'


# ==================================================================================
# INSTRUCTION LAYOUT
# ==================================================================================
DISCRIMINATOR_LENGTH = 8
ENDIAN = 'little'


# ==================================================================================
# GOVERNANCE DEFAULTS
# ==================================================================================
SECONDS_PER_DAY = 86400
DEFAULT_VOTING_PERIOD_SECONDS = 5 * SECONDS_PER_DAY
DEFAULT_EXECUTION_DELAY_SECONDS = SECONDS_PER_DAY
MAX_PROPOSAL_TITLE_LENGTH = 100
PERCENT_MIN = 1
PERCENT_MAX = 100

DURATION_UNITS = {
    'second': 1,
    'minute': 60,
    'hour': 3600,
    'day': SECONDS_PER_DAY,
    'week': 7 * SECONDS_PER_DAY,
}


# ==================================================================================
# VOTING POWER
# ==================================================================================
TIME_WEIGHT_DEFAULT_CURVE = 'linear'
TIME_WEIGHT_DEFAULT_MAX_MULTIPLIER = 2.0
TIME_WEIGHT_DEFAULT_MAX_DURATION_SECONDS = 365 * SECONDS_PER_DAY
# Multipliers are quantized to 4 decimal digits before touching integer balances
MULTIPLIER_PRECISION = 10_000


# ==================================================================================
# CONFIGURATION WRAPPERS
# ==================================================================================
class ConfigString(str):
    """
    String subclass that stores a default value.
    """
    def __new__(cls, value, default):
        obj = str.__new__(cls, value)
        obj._default = default
        return obj

    def default(self):
        return self._default

class ConfigBool(int):
    """
    Int subclass acting as a boolean that stores a default value.
    """
    def __new__(cls, value, default):
        obj = int.__new__(cls, bool(value))
        obj._default = default
        return obj

    def default(self):
        return self._default

    def __repr__(self):
        return str(bool(self))

    def __str__(self):
        return str(bool(self))

    def __eq__(self, other):
        return bool(self) == other

    __hash__ = int.__hash__


# ==================================================================================
# DYNAMIC CONFIGURATION LOADING
# ==================================================================================
DEFAULTS = LOGGER_DEFAULTS
namespace = globals()

def parse_bool(v):
    """
    Convert "True"/"False" (any casing, with surrounding whitespace) into bool.
    Avoids exceptions by only calling ast.literal_eval for known literals.
    """
    if not isinstance(v, str):
        return v
    s = v.strip()
    if not s:
        return v
    if s.casefold() in {"true", "false"}:
        return ast.literal_eval(s.title())
    return v

for key, default_raw in DEFAULTS.items():
    # dotenv_values returns strings or None. None is treated as missing.
    raw = _config.get(key)
    value_raw = default_raw if raw is None else raw

    value = parse_bool(value_raw)
    default_val = parse_bool(default_raw)

    if isinstance(value, bool):
        namespace[key] = ConfigBool(value, default_val)
    else:
        namespace[key] = ConfigString(value_raw, default_val)
