from solnftcollection.client import NFTClient
from solnftcollection.helpers import (
    airdrop_if_required,
    get_explorer_link,
    load_keypair_from_file,
)
from solnftcollection.rpc import SolanaRPC

__all__ = [
    "NFTClient",
    "SolanaRPC",
    "airdrop_if_required",
    "get_explorer_link",
    "load_keypair_from_file",
]
