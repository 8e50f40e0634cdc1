import json

import pytest
from loguru import logger
from solders.keypair import Keypair

from solnftcollection import cli, config
from solnftcollection.client import NFTClient
from solnftcollection.exceptions import AccountNotFoundError, TransactionError
from solnftcollection.token_metadata import find_metadata_pda
from tests.conftest import FakeLedger


@pytest.fixture
def messages():
    records = []
    handler_id = logger.add(lambda message: records.append(message.record["message"]))
    yield records
    logger.remove(handler_id)


def test_create_collection_marks_collection_with_zero_royalty(client, ledger):
    collection = cli.create_collection(client, "devnet")

    assert collection.metadata.is_collection
    assert collection.metadata.collection_details.size == 0
    assert collection.metadata.seller_fee_basis_points == 0
    assert collection.metadata.name == config.COLLECTION_NAME
    assert collection.metadata.update_authority == client.public_key
    assert collection.mint.supply == 1
    assert collection.edition is not None
    assert len(ledger.confirmed) == 1


def test_create_collection_twice_gives_distinct_mints(client):
    first = cli.create_collection(client, "devnet")
    second = cli.create_collection(client, "devnet")
    assert first.public_key != second.public_key


def test_create_nft_references_unverified_collection(client):
    collection = cli.create_collection(client, "devnet")

    nft = cli.create_nft(client, str(collection.public_key), "devnet", propagation_delay=0)

    assert nft.metadata.collection.key == collection.public_key
    assert nft.metadata.collection.verified is False
    assert not nft.metadata.is_collection
    assert nft.metadata.symbol == config.NFT_SYMBOL
    assert nft.metadata.seller_fee_basis_points == 0


def test_verify_nft_with_collection_authority(client, ledger):
    collection = cli.create_collection(client, "devnet")
    nft = cli.create_nft(client, str(collection.public_key), "devnet", propagation_delay=0)

    verified = cli.verify_nft(
        client, str(collection.public_key), str(nft.public_key), "devnet"
    )

    assert verified.metadata.collection.verified is True
    refetched = client.fetch_digital_asset(nft.public_key)
    assert refetched.metadata.collection.verified is True


def test_verify_nft_with_other_authority_fails(client, ledger):
    collection = cli.create_collection(client, "devnet")
    nft = cli.create_nft(client, str(collection.public_key), "devnet", propagation_delay=0)
    stranger = NFTClient(ledger, Keypair())

    with pytest.raises(TransactionError) as e:
        cli.verify_nft(stranger, str(collection.public_key), str(nft.public_key), "devnet")

    assert "Update Authority" in str(e.value)
    assert client.fetch_digital_asset(nft.public_key).metadata.collection.verified is False


def test_verify_message_printed_after_confirmation(client, ledger, messages):
    collection = cli.create_collection(client, "devnet")
    nft = cli.create_nft(client, str(collection.public_key), "devnet", propagation_delay=0)
    confirmed_before = len(ledger.confirmed)
    seen = []
    handler_id = logger.add(
        lambda message: seen.append(len(ledger.confirmed))
        if "verified as member of" in message.record["message"]
        else None
    )
    try:
        cli.verify_nft(client, str(collection.public_key), str(nft.public_key), "devnet")
    finally:
        logger.remove(handler_id)

    assert seen == [confirmed_before + 1]
    assert any(
        f"https://explorer.solana.com/address/{nft.public_key}?cluster=devnet" in m
        for m in messages
    )


def test_fetch_missing_asset(client):
    with pytest.raises(AccountNotFoundError):
        client.fetch_digital_asset(Keypair().pubkey())


def test_fetch_asset_without_metadata(client, ledger):
    collection = cli.create_collection(client, "devnet")
    del ledger.metadata[find_metadata_pda(collection.public_key)[0]]
    with pytest.raises(AccountNotFoundError):
        client.fetch_digital_asset(collection.public_key)


def test_setup_client_airdrops_on_devnet(tmp_path, messages):
    keypair = Keypair()
    path = tmp_path / "id.json"
    path.write_text(json.dumps(list(bytes(keypair))))

    ledger = FakeLedger(balance=0)
    client = cli.setup_client(ledger, "devnet", str(path))

    assert client.public_key == keypair.pubkey()
    assert ledger.airdrops == [(keypair.pubkey(), config.AIRDROP_AMOUNT)]
    assert f"Loaded user: {keypair.pubkey()}" in messages


def test_setup_client_skips_airdrop_on_mainnet(tmp_path):
    keypair = Keypair()
    path = tmp_path / "id.json"
    path.write_text(json.dumps(list(bytes(keypair))))

    ledger = FakeLedger(balance=0)
    cli.setup_client(ledger, "mainnet-beta", str(path))
    assert ledger.airdrops == []


def test_main_exits_with_error_code(tmp_path, monkeypatch):
    monkeypatch.setattr(config, "KEYPAIR_PATH", str(tmp_path / "missing.json"))
    monkeypatch.setattr(config, "LOG_FILE", str(tmp_path / "nft_scripts.log"))

    with pytest.raises(SystemExit) as e:
        cli.create_collection_main()

    assert e.value.code == 1
    logger.remove()
    assert "missing.json" in (tmp_path / "nft_scripts.log").read_text()
