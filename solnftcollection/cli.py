import sys
import time

from loguru import logger
from solders.keypair import Keypair
from solders.pubkey import Pubkey

from solnftcollection import config
from solnftcollection.client import NFTClient
from solnftcollection.helpers import (
    airdrop_if_required,
    get_explorer_link,
    load_keypair_from_file,
    percent_amount,
)
from solnftcollection.rpc import SolanaRPC
from solnftcollection.token_metadata import Collection, DigitalAsset

TEST_CLUSTERS = ("devnet", "testnet", "localnet")


def setup_logging():
    logger.remove()
    logger.add(sys.stdout, format="{message}", level="INFO")
    logger.add(
        config.LOG_FILE,
        format="{time} {level} {message}",
        rotation="10 MB",
        retention="1 week",
    )


def setup_client(
    rpc: SolanaRPC, cluster: str = config.CLUSTER, keypair_path: str = None
) -> NFTClient:
    """
    Loads the user keypair, tops up its balance on test clusters and binds client to it.
    """
    user = load_keypair_from_file(keypair_path)
    if cluster in TEST_CLUSTERS:
        airdrop_if_required(
            rpc, user.pubkey(), config.AIRDROP_AMOUNT, config.MINIMUM_BALANCE
        )
    logger.info(f"Loaded user: {user.pubkey()}")
    client = NFTClient(rpc, user)
    logger.info("Set up client for user")
    return client


def create_collection(client: NFTClient, cluster: str = config.CLUSTER) -> DigitalAsset:
    collection_mint = Keypair()
    client.create_nft(
        mint=collection_mint,
        name=config.COLLECTION_NAME,
        symbol=config.COLLECTION_SYMBOL,
        uri=config.COLLECTION_URI,
        seller_fee_basis_points=percent_amount(0),
        is_collection=True,
    )
    collection = client.fetch_digital_asset(collection_mint.pubkey())
    logger.info(
        f"Created Collection 📦! Address is "
        f"{get_explorer_link('address', str(collection.public_key), cluster)}"
    )
    return collection


def create_nft(
    client: NFTClient,
    collection_address: str = config.COLLECTION_ADDRESS,
    cluster: str = config.CLUSTER,
    propagation_delay: float = config.PROPAGATION_DELAY,
) -> DigitalAsset:
    collection_key = Pubkey.from_string(collection_address)
    logger.info("Creating NFT...")
    mint = Keypair()
    client.create_nft(
        mint=mint,
        name=config.NFT_NAME,
        symbol=config.NFT_SYMBOL,
        uri=config.NFT_URI,
        seller_fee_basis_points=percent_amount(0),
        collection=Collection(key=collection_key, verified=False),
    )
    # Give RPC nodes time to catch up before reading the new accounts
    time.sleep(propagation_delay)
    nft = client.fetch_digital_asset(mint.pubkey())
    logger.info(
        f"Created NFT! Address is "
        f"{get_explorer_link('address', str(nft.public_key), cluster)}"
    )
    return nft


def verify_nft(
    client: NFTClient,
    collection_address: str = config.COLLECTION_ADDRESS,
    nft_address: str = config.NFT_ADDRESS,
    cluster: str = config.CLUSTER,
) -> DigitalAsset:
    collection_key = Pubkey.from_string(collection_address)
    nft_key = Pubkey.from_string(nft_address)
    client.verify_collection(nft_key, collection_key)
    logger.info(
        f"NFT {nft_key} verified as member of {collection_key}! "
        f"See more details @ {get_explorer_link('address', str(nft_key), cluster)}"
    )
    nft = client.fetch_digital_asset(nft_key)
    logger.info(f"Collection verified flag: {nft.metadata.collection.verified}")
    return nft


def _run(workflow):
    setup_logging()
    with SolanaRPC(config.cluster_api_url(config.CLUSTER)) as rpc:
        client = setup_client(rpc, config.CLUSTER)
        workflow(client)


@logger.catch(onerror=lambda _: sys.exit(1))
def create_collection_main():
    _run(create_collection)


@logger.catch(onerror=lambda _: sys.exit(1))
def create_nft_main():
    _run(create_nft)


@logger.catch(onerror=lambda _: sys.exit(1))
def verify_nft_main():
    _run(verify_nft)
