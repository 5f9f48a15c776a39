"""Escrow spec configuration constants.

Keep the event topics and deployment values aligned with the deployed
`EscrowContract` (goerli) that the client application talks to.
"""

# Units
ETHER_DECIMALS = 18
WEI_PER_ETHER = 10**ETHER_DECIMALS

# Encoding
ADDRESS_LEN = 20
WORD_LEN = 32
U256_MAX = (1 << 256) - 1

# Ordering
MAX_NONCE_GAP = 64
MAX_TXS_PER_BLOCK = 1000
MAX_LOGS_PER_TX = 16

# Event topics (keccak256 of the event signatures)
NEW_ESCROW_TOPIC = bytes.fromhex(
    "2cfcb73d0e9e6119ca0bf431d1e37d3dfbd6308ddc6e5d36f665dd34c5d0aa95"
)  # newEscrow(uint256,address,address,address)
APPROVED_TOPIC = bytes.fromhex(
    "3ad93af63cb7967b23e4fb500b7d7d28b07516325dcf341f88bebf959d82c1cb"
)  # Approved(uint256)
REVOKED_TOPIC = bytes.fromhex(
    "61e27b0bfd8e18e6b92ec32ce1c28bb698d27bfe93e84c7e94d4db0a3135c760"
)  # Revoked(uint256)

EVENT_NAMES = {
    NEW_ESCROW_TOPIC: "newEscrow",
    APPROVED_TOPIC: "Approved",
    REVOKED_TOPIC: "Revoked",
}

# Read accessors (first 4 bytes of keccak256 of the signature)
GET_LOCKED_AMOUNT_SELECTOR = bytes.fromhex("fcb40fd4")  # getLockedAmount(uint256)

# Deployment
REGISTRY_ADDRESS = bytes.fromhex("196c2ae4c84ddbc12f7986f108abb0062d145dc5")
REGISTRY_DEPLOY_BLOCK = 0x836C21

# Chain / network
CHAIN_ID_MAINNET = 1
CHAIN_ID_GOERLI = 5
CHAIN_ID_DEVNET = 31337
