import json
import os
from urllib.parse import quote

from loguru import logger
from solders.keypair import Keypair
from solders.pubkey import Pubkey

from solnftcollection import config
from solnftcollection.exceptions import KeypairFileError
from solnftcollection.rpc import SolanaRPC

EXPLORER_URL = "https://explorer.solana.com"
LOCALNET_URL = "http://localhost:8899"
EXPLORER_PATHS = {
    "transaction": "tx",
    "tx": "tx",
    "address": "address",
    "block": "block",
}


def load_keypair_from_file(filepath: str = None) -> Keypair:
    """
    Loads keypair from JSON file with array of 64 secret key bytes (solana-keygen format)
    :param filepath: path to the file, "~" is expanded. Default is config.KEYPAIR_PATH
    :return: Keypair
    """
    if filepath is None:
        filepath = config.KEYPAIR_PATH
    path = os.path.expanduser(filepath)
    try:
        with open(path, "r") as f:
            secret_key = json.load(f)
        return Keypair.from_bytes(bytes(secret_key))
    except (OSError, ValueError, TypeError) as e:
        raise KeypairFileError(
            f"Could not read keypair from file at '{filepath}': {e}"
        ) from e


def airdrop_if_required(
    rpc: SolanaRPC,
    pubkey: Pubkey,
    airdrop_amount: int,
    minimum_balance: int,
) -> int:
    """
    Requests airdrop only if the balance is below the minimum.
    :param rpc: client of a test cluster
    :param pubkey: account to fund
    :param airdrop_amount: lamports to request
    :param minimum_balance: lamports threshold
    :return: balance after the (possible) airdrop
    """
    balance = rpc.get_balance(pubkey)
    if balance >= minimum_balance:
        logger.debug(
            f"Balance {balance / config.LAMPORTS_PER_SOL} SOL is enough, skipping airdrop"
        )
        return balance
    logger.info(
        f"Balance {balance / config.LAMPORTS_PER_SOL} SOL is low, "
        f"requesting airdrop of {airdrop_amount / config.LAMPORTS_PER_SOL} SOL"
    )
    blockhash = rpc.get_latest_blockhash()
    signature = rpc.request_airdrop(pubkey, airdrop_amount)
    rpc.confirm_transaction(signature, blockhash["lastValidBlockHeight"])
    return rpc.get_balance(pubkey)


def get_explorer_link(link_type: str, id_: str, cluster: str = "mainnet-beta") -> str:
    """
    :param link_type: "transaction", "tx", "address" or "block"
    :param id_: signature, address or slot
    :param cluster: "mainnet-beta", "devnet", "testnet" or "localnet"
    :return: Solana Explorer URL
    """
    if link_type not in EXPLORER_PATHS:
        raise ValueError(f"Unknown link type '{link_type}'")
    url = f"{EXPLORER_URL}/{EXPLORER_PATHS[link_type]}/{id_}"
    if cluster == "localnet":
        return f"{url}?cluster=custom&customUrl={quote(LOCALNET_URL, safe='')}"
    if cluster != "mainnet-beta":
        return f"{url}?cluster={cluster}"
    return url


def percent_amount(percent: float) -> int:
    """Converts royalty percent to basis points, e.g. 5.5 -> 550."""
    if not 0 <= percent <= 100:
        raise ValueError(f"Percent must be between 0 and 100, got {percent}")
    return round(percent * 100)
