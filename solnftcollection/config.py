import os

LAMPORTS_PER_SOL = 1_000_000_000

CLUSTER_URLS = {
    "devnet": "https://api.devnet.solana.com",
    "testnet": "https://api.testnet.solana.com",
    "mainnet-beta": "https://api.mainnet-beta.solana.com",
    "localnet": "http://localhost:8899",
}

CLUSTER = os.environ.get("SOLANA_CLUSTER", "devnet")
RPC_URL = os.environ.get("SOLANA_RPC_URL", "")
KEYPAIR_PATH = os.environ.get("SOLANA_KEYPAIR_PATH", "~/.config/solana/id.json")
LOG_FILE = os.environ.get("NFT_LOG_FILE", "nft_scripts.log")

# Airdrop 1 SOL if balance is below 0.5 SOL
AIRDROP_AMOUNT = 1 * LAMPORTS_PER_SOL
MINIMUM_BALANCE = int(0.5 * LAMPORTS_PER_SOL)

HTTP_TIMEOUT = 30
CONFIRM_TIMEOUT = 60
CONFIRM_POLL_INTERVAL = 0.5
PROPAGATION_DELAY = 2

COLLECTION_NAME = "Tosh's Collection"
COLLECTION_SYMBOL = "TC"
COLLECTION_URI = (
    "https://purple-cheap-bobcat-47.mypinata.cloud/ipfs/"
    "bafkreihwjnzrooe3goh53roxwecbkn5yiq5kuzqc3ohvf6ny36aun4tt34"
)

NFT_NAME = "Tosh NFT 1"
NFT_SYMBOL = "T-NFT-1"
NFT_URI = (
    "https://purple-cheap-bobcat-47.mypinata.cloud/ipfs/"
    "bafkreignztfeqo77xzbh5vjssrm4nto3tit57l2uiu7vxg6sft5wffx3tm"
)

# Addresses printed by earlier runs, copied here by hand
COLLECTION_ADDRESS = os.environ.get(
    "COLLECTION_ADDRESS", "H9an4eoe4qvHN8prpptrxrUtVadWRJ2SfTCznXqWNwVi"
)
NFT_ADDRESS = os.environ.get(
    "NFT_ADDRESS", "EhVJLzqXnyypn95ZFL8QKVFSntRehk85JAQhcgAG9fwS"
)


def cluster_api_url(cluster: str = CLUSTER) -> str:
    """
    :param cluster: one of CLUSTER_URLS keys
    :return: RPC endpoint for the cluster, or SOLANA_RPC_URL when it is set
    """
    if RPC_URL:
        return RPC_URL
    try:
        return CLUSTER_URLS[cluster]
    except KeyError:
        raise ValueError(
            f"Unknown cluster '{cluster}'. Options: {list(CLUSTER_URLS.keys())}"
        )
