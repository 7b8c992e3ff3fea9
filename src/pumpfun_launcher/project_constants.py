"""
Fixed parameters of the Pump.fun `create` instruction and launcher defaults.

Program ids, seeds and the discriminator come from the Pump.fun IDL and
must not be changed.
"""

# Pump.fun program (MAINNET)
PUMP_FUN_PROGRAM_ID = "6EF8rrecthR5Dkzon8Nwu78hRvfCKubJ14M5uBEwF6P"
MPL_TOKEN_METADATA_PROGRAM_ID = "metaqbxxUerdq28cj1RbAWkYQm3ybzjb6a8bt518x1s"
SYSTEM_PROGRAM_ID = "11111111111111111111111111111111"
TOKEN_PROGRAM_ID = "TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA"
ASSOCIATED_TOKEN_PROGRAM_ID = "ATokenGPvbdGVxr1b2hvZbsiqW5xWH25efTNsLJA8knL"
RENT_SYSVAR_ID = "SysvarRent111111111111111111111111111111111"

CREATE_INSTRUCTION_DISCRIMINATOR = bytes([24, 30, 200, 40, 5, 28, 7, 119])

GLOBAL_ACCOUNT_SEED = b"global"
MINT_AUTHORITY_SEED = b"mint-authority"
BONDING_CURVE_SEED = b"bonding-curve"
METADATA_SEED = b"metadata"
EVENT_AUTHORITY_SEED = b"__event_authority"

LAMPORTS_PER_SOL = 1_000_000_000
# 0.01 SOL
MIN_REQUIRED_LAMPORTS = 10_000_000

# Metaplex limits
MAX_SYMBOL_LENGTH = 10
MAX_NAME_LENGTH = 32

PUMP_FUN_IPFS_URL = "https://pump.fun/api/ipfs"
IMAGE_FILENAME = "image.png"
DEFAULT_IMAGE_PATH = f"data/{IMAGE_FILENAME}"

DEFAULT_RPC_TEMPLATE = "https://mainnet.helius-rpc.com/?api-key={api_key}"
DEFAULT_VANITY_STATUS_URL = "http://localhost:3001"

# Vanity wait loop
DEFAULT_POLL_INTERVAL_S = 5.0
DEFAULT_POLL_RETRIES = 3
DEFAULT_STATUS_TIMEOUT_S = 10.0
