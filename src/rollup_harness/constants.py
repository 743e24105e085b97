"""Protocol constants shared by expectations, predicates and fee accounting.

Transaction type codes are compared bit-exact against the ``type`` field of
receipts returned by both layers.
"""

# Transaction type codes
LEGACY_TX_TYPE = 0x00
EIP2930_TX_TYPE = 0x01  # access-list transactions, rejected by the rollup
EIP1559_TX_TYPE = 0x02
EIP712_TX_TYPE = 0x71
PRIORITY_OPERATION_L2_TX_TYPE = 0xFF

# Receipt status
TX_STATUS_FAILED = 0
TX_STATUS_SUCCESS = 1

# Tokens
ETH_ADDRESS = "0x" + "00" * 20

# Bridging
REQUIRED_L1_TO_L2_GAS_PER_PUBDATA_LIMIT = 800
DEFAULT_GAS_PRICE_SCALE_PERCENT = 140

# Rejection reasons reported by the rollup API
ACCESS_LIST_NOT_SUPPORTED = "access lists are not supported"
INSUFFICIENT_FUNDS = "insufficient funds for gas + value."

# ERC-20
BALANCE_OF_SELECTOR = "0x70a08231"
