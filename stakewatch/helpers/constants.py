"""Common configuration constants used across the application."""

# Batch Size Constants
DEFAULT_LOG_BATCH_SIZE = 5000
"""Default number of blocks per eth_getLogs range query"""

MIN_LOG_BATCH_SIZE = 1
"""Smallest block range the fetcher will split down to"""

ETHERSCAN_MAX_RESULTS = 1000
"""Etherscan returns at most this many logs per getLogs query"""

# HTTP and Network Constants
DEFAULT_TIMEOUT = 30.0
"""Default HTTP request timeout in seconds"""

ETHERSCAN_TIMEOUT = 15.0
"""Timeout for Etherscan REST calls"""

LABEL_SERVICE_TIMEOUT = 10.0
"""Timeout for the optional address label service"""

# Throttling (minimum seconds between requests to the same provider)
RPC_REQUEST_INTERVAL = 0.5
"""Delay between requests to a public JSON-RPC endpoint"""

ETHERSCAN_REQUEST_INTERVAL = 0.2
"""Delay between Etherscan requests"""

STAKING_API_REQUEST_INTERVAL = 0.1
"""Delay between staking API requests in per-validator loops"""

LABEL_SERVICE_REQUEST_INTERVAL = 0.25
"""Delay between label service requests (4 per second)"""

ENDPOINT_ROTATION_DELAY = 1.0
"""Pause before retrying a call on the next RPC endpoint"""

# Retry Configuration
MAX_RETRIES = 3
"""Default maximum number of retry attempts"""

RETRY_BASE_DELAY = 1.0
"""Base delay for exponential backoff in seconds"""

RETRY_MAX_DELAY = 30.0
"""Maximum delay between retries in seconds"""

# Chain Constants
BLOCK_TIME_SECONDS = 12
"""Assumed average Ethereum block interval used for block estimation"""

TOKEN_DECIMALS = 18
"""Fractional digits of POL base units"""

TOKEN_SYMBOL = "POL"

STAKING_MANAGER_CONTRACT = "0xa59c847bd5ac0172ff4fe912c5d29e5a71a7512b"
"""Polygon staking manager on Ethereum mainnet"""

SHARE_MINTED_TOPIC = (
    "0xc9afff0972d33d68c8d330fe0ebd0e9f54491ad8c59ae17330a9206f280f0865"
)
"""ShareMinted(uint256,address,uint256,uint256)"""

UNSTAKE_INIT_TOPIC = (
    "0x9a8f44850296624dadfd9c246d17e47171d35727a181bd090aa14bbbe00238bb"
)
"""UnstakeInit(address,uint256,uint256,uint256)"""

# Endpoints
PUBLIC_RPC_ENDPOINTS = [
    "https://eth.llamarpc.com",
    "https://rpc.ankr.com/eth",
    "https://ethereum.publicnode.com",
    "https://eth.drpc.org",
    "https://1rpc.io/eth",
]
"""Fallback chain of public Ethereum JSON-RPC endpoints"""

ETHERSCAN_API_URL = "https://api.etherscan.io/v2/api"

ETHEREUM_CHAIN_ID = 1

STAKING_API_URL = "https://staking-api.polygon.technology/api/v2"

LABEL_API_URL = "https://api.arkhamintelligence.com"


__all__ = [
    "BLOCK_TIME_SECONDS",
    "DEFAULT_LOG_BATCH_SIZE",
    "DEFAULT_TIMEOUT",
    "ENDPOINT_ROTATION_DELAY",
    "ETHEREUM_CHAIN_ID",
    "ETHERSCAN_API_URL",
    "ETHERSCAN_MAX_RESULTS",
    "ETHERSCAN_REQUEST_INTERVAL",
    "ETHERSCAN_TIMEOUT",
    "LABEL_API_URL",
    "LABEL_SERVICE_REQUEST_INTERVAL",
    "LABEL_SERVICE_TIMEOUT",
    "MAX_RETRIES",
    "MIN_LOG_BATCH_SIZE",
    "PUBLIC_RPC_ENDPOINTS",
    "RETRY_BASE_DELAY",
    "RETRY_MAX_DELAY",
    "RPC_REQUEST_INTERVAL",
    "SHARE_MINTED_TOPIC",
    "STAKING_API_REQUEST_INTERVAL",
    "STAKING_API_URL",
    "STAKING_MANAGER_CONTRACT",
    "TOKEN_DECIMALS",
    "TOKEN_SYMBOL",
    "UNSTAKE_INIT_TOPIC",
]
