"""
Central configuration constants for ledger-money.

This module contains the defaults and well-known values used throughout the
package. Modify values here to adjust behavior without changing logic.
"""

# =============================================================================
# NATIVE ASSET
# =============================================================================

# The ledger's native asset never appears in the node's asset details endpoint,
# so it is always served from the static table.
NATIVE_ASSET_ID = "WAVES"
NATIVE_ASSET_NAME = "Waves"
NATIVE_ASSET_PRECISION = 8


# =============================================================================
# AMOUNT LIMITS
# =============================================================================

# Largest number of fractional digits an asset may declare.
MAX_ASSET_PRECISION = 64

# Amounts and rates may carry at most this many integral digits and this many
# significant digits. Together with MAX_ASSET_PRECISION this keeps every coin
# amount and every amount * rate product inside the 1000-digit decimal context.
MAX_AMOUNT_DIGITS = 400


# =============================================================================
# NODE CONNECTION
# =============================================================================

DEFAULT_NODE_URL = "https://nodes.wavesnodes.com"
ASSET_DETAILS_PATH = "/assets/details/{asset_id}"

CONNECT_TIMEOUT_SECONDS = 5.0
READ_TIMEOUT_SECONDS = 30.0


# =============================================================================
# ENVIRONMENT
# =============================================================================

ENV_PREFIX = "LEDGER_MONEY_"
