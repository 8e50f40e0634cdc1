from itertools import count
from typing import Dict, Tuple

import pytest
from solders.hash import Hash
from solders.keypair import Keypair
from solders.pubkey import Pubkey

from solnftcollection.client import NFTClient
from solnftcollection.exceptions import TransactionError
from solnftcollection.layout import BorshReader, BorshWriter
from solnftcollection.token_metadata import (
    CREATE_DISCRIMINATOR,
    KEY_MASTER_EDITION_V2,
    KEY_METADATA_V1,
    MINT_DISCRIMINATOR,
    TOKEN_METADATA_PROGRAM_ID,
    TOKEN_PROGRAM_ID,
    VERIFY_DISCRIMINATOR,
    AssetData,
    find_master_edition_pda,
)

BLOCKHASH = str(Hash.default())


def encode_metadata(
    update_authority: Pubkey, mint: Pubkey, asset: AssetData, edition_nonce: int = 255
) -> bytes:
    writer = BorshWriter().u8(KEY_METADATA_V1).pubkey(update_authority).pubkey(mint)
    writer.string(asset.name).string(asset.symbol).string(asset.uri)
    writer.u16(asset.seller_fee_basis_points)
    writer.option(asset.creators, lambda w, v: w.vec(v, lambda w2, c: c.write(w2)))
    writer.bool(asset.primary_sale_happened).bool(asset.is_mutable)
    writer.option(edition_nonce, BorshWriter.u8)
    writer.option(asset.token_standard, BorshWriter.u8)
    writer.option(asset.collection, lambda w, v: v.write(w))
    writer.option(asset.uses, lambda w, v: v.write(w))
    writer.option(asset.collection_details, lambda w, v: v.write(w))
    return writer.to_bytes()


def encode_mint(authority: Pubkey, supply: int, decimals: int = 0) -> bytes:
    return (
        BorshWriter()
        .u32(1)
        .pubkey(authority)
        .u64(supply)
        .u8(decimals)
        .bool(True)
        .u32(1)
        .pubkey(authority)
        .to_bytes()
    )


class FakeLedger:
    """In-memory stand-in for SolanaRPC which executes Token Metadata create/mint/verify."""

    def __init__(self, balance: int = 0):
        self.balances: Dict[Pubkey, int] = {}
        self.default_balance = balance
        self.accounts: Dict[Pubkey, Tuple[Pubkey, bytes]] = {}
        # metadata address -> (update authority, mint, asset data)
        self.metadata: Dict[Pubkey, Tuple[Pubkey, Pubkey, AssetData]] = {}
        self.supplies: Dict[Pubkey, int] = {}
        self.airdrops = []
        self.sent = []
        self.confirmed = []
        self._airdrop_ids = count(1)

    def get_balance(self, pubkey: Pubkey) -> int:
        return self.balances.get(pubkey, self.default_balance)

    def request_airdrop(self, pubkey: Pubkey, lamports: int) -> str:
        self.balances[pubkey] = self.get_balance(pubkey) + lamports
        self.airdrops.append((pubkey, lamports))
        return f"airdrop-{next(self._airdrop_ids)}"

    def get_latest_blockhash(self) -> dict:
        return {"blockhash": BLOCKHASH, "lastValidBlockHeight": 1000}

    def get_block_height(self) -> int:
        return 900

    def confirm_transaction(self, signature: str, last_valid_block_height=None, **kwargs):
        self.confirmed.append(signature)
        return {"confirmationStatus": "confirmed", "err": None}

    def get_account_info(self, pubkey: Pubkey):
        if pubkey in self.metadata:
            update_authority, mint, asset = self.metadata[pubkey]
            return {
                "data": encode_metadata(update_authority, mint, asset),
                "owner": TOKEN_METADATA_PROGRAM_ID,
                "lamports": 5616720,
                "executable": False,
            }
        if pubkey in self.supplies:
            edition, _ = find_master_edition_pda(pubkey)
            return {
                "data": encode_mint(edition, self.supplies[pubkey]),
                "owner": TOKEN_PROGRAM_ID,
                "lamports": 1461600,
                "executable": False,
            }
        if pubkey in self.accounts:
            owner, data = self.accounts[pubkey]
            return {"data": data, "owner": owner, "lamports": 2853600, "executable": False}
        return None

    def send_transaction(self, transaction) -> str:
        message = transaction.message
        keys = list(message.account_keys)
        signers = set(keys[: message.header.num_required_signatures])
        for instruction in message.instructions:
            program = keys[instruction.program_id_index]
            assert program == TOKEN_METADATA_PROGRAM_ID
            accounts = [keys[i] for i in bytes(instruction.accounts)]
            data = bytes(instruction.data)
            if data[0] == CREATE_DISCRIMINATOR:
                self._create(accounts, data)
            elif data[0] == MINT_DISCRIMINATOR:
                mint = accounts[5]
                self.supplies[mint] += BorshReader(data, 2).u64()
            elif data[0] == VERIFY_DISCRIMINATOR:
                self._verify(accounts, signers)
            else:
                raise TransactionError(f"unknown instruction {data[0]}")
        signature = str(transaction.signatures[0])
        self.sent.append(signature)
        return signature

    def _create(self, accounts, data):
        metadata, edition, mint = accounts[0], accounts[1], accounts[2]
        update_authority = accounts[5]
        if mint in self.supplies:
            raise TransactionError("Mint account already in use")
        asset = AssetData.read(BorshReader(data, 2))
        self.metadata[metadata] = (update_authority, mint, asset)
        self.supplies[mint] = 0
        edition_data = BorshWriter().u8(KEY_MASTER_EDITION_V2).u64(0).option(
            0, BorshWriter.u64
        )
        self.accounts[edition] = (TOKEN_METADATA_PROGRAM_ID, edition_data.to_bytes())

    def _verify(self, accounts, signers):
        authority, metadata, collection_mint, collection_metadata = (
            accounts[0],
            accounts[2],
            accounts[3],
            accounts[4],
        )
        if collection_metadata not in self.metadata:
            raise TransactionError("Collection metadata account not found")
        collection_authority, _, collection_asset = self.metadata[collection_metadata]
        if authority not in signers or authority != collection_authority:
            raise TransactionError(
                "Error processing Instruction 0: "
                "Update Authority for Collection is incorrect"
            )
        if collection_asset.collection_details is None:
            raise TransactionError("Collection must be a collection NFT")
        update_authority, mint, asset = self.metadata[metadata]
        if asset.collection is None or asset.collection.key != collection_mint:
            raise TransactionError("Collection key does not match")
        asset.collection.verified = True


@pytest.fixture
def ledger():
    return FakeLedger(balance=2_000_000_000)


@pytest.fixture
def user():
    return Keypair()


@pytest.fixture
def client(ledger, user):
    return NFTClient(ledger, user)
