"""
Domain constants used across services/routers.
"""

# Airdrop multipliers are integers where 100 == 1.0x
BASE_AIRDROP_MULTIPLIER = 100

# Access level a freshly minted pass starts at
BASE_ACCESS_LEVEL = 0

# Human-readable names for the known access tiers
ACCESS_LEVEL_NAMES = {
    0: "Genesis",
    1: "Alpha",
}

MICROALGOS_PER_ALGO = 1_000_000
