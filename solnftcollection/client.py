from typing import Iterable, List, Optional

from loguru import logger
from solders.hash import Hash
from solders.instruction import Instruction
from solders.keypair import Keypair
from solders.message import MessageV0
from solders.pubkey import Pubkey
from solders.transaction import VersionedTransaction

from solnftcollection.exceptions import AccountNotFoundError, UnexpectedAccountError
from solnftcollection.rpc import SolanaRPC
from solnftcollection.token_metadata import (
    TOKEN_METADATA_PROGRAM_ID,
    TOKEN_PROGRAM_ID,
    AssetData,
    Collection,
    CollectionDetails,
    Creator,
    DigitalAsset,
    MasterEdition,
    Metadata,
    Mint,
    create_v1,
    find_master_edition_pda,
    find_metadata_pda,
    mint_v1,
    verify_collection_v1,
)


class NFTClient:
    def __init__(self, rpc: SolanaRPC, identity: Keypair):
        """
        Constructor
        :param rpc: client bound to the cluster
        :param identity: keypair which pays for and signs every transaction
        """
        self.rpc = rpc
        self.identity = identity

    @property
    def public_key(self) -> Pubkey:
        return self.identity.pubkey()

    def send_and_confirm(
        self, instructions: List[Instruction], signers: Iterable[Keypair] = ()
    ) -> str:
        """
        Builds transaction paid by the identity, signs it, sends it and waits for confirmation.
        :param instructions: instructions of the transaction
        :param signers: additional signers besides the identity
        :return: transaction signature
        """
        blockhash = self.rpc.get_latest_blockhash()
        message = MessageV0.try_compile(
            self.public_key,
            instructions,
            [],
            Hash.from_string(blockhash["blockhash"]),
        )
        logger.debug("Signing transaction...")
        transaction = VersionedTransaction(message, [self.identity, *signers])
        logger.debug("Sending transaction to the blockchain...")
        signature = self.rpc.send_transaction(transaction)
        self.rpc.confirm_transaction(signature, blockhash["lastValidBlockHeight"])
        logger.debug(f"Transaction confirmed: {signature}")
        return signature

    def create_nft(
        self,
        mint: Keypair,
        name: str,
        symbol: str,
        uri: str,
        seller_fee_basis_points: int,
        is_collection: bool = False,
        collection: Optional[Collection] = None,
        creators: Optional[List[Creator]] = None,
    ) -> str:
        """
        Creates mint, metadata and master edition and mints one token to the identity.
        :param mint: fresh keypair of the new mint
        :param name: self-explanatory, up to 32 bytes
        :param symbol: self-explanatory, up to 10 bytes
        :param uri: off-chain JSON metadata, up to 200 bytes
        :param seller_fee_basis_points: royalty, see helpers.percent_amount
        :param is_collection: if True, the asset becomes a collection root
        :param collection: optional collection the asset belongs to, should be unverified
        :param creators: defaults to the identity with 100% share
        :return: transaction signature
        """
        if creators is None:
            creators = [Creator(self.public_key, verified=True, share=100)]
        asset_data = AssetData(
            name=name,
            symbol=symbol,
            uri=uri,
            seller_fee_basis_points=seller_fee_basis_points,
            creators=creators,
            collection=collection,
            collection_details=CollectionDetails(size=0) if is_collection else None,
        )
        logger.info(f"Creating NFT '{name}' with mint {mint.pubkey()}...")
        instructions = [
            create_v1(
                mint=mint.pubkey(),
                authority=self.public_key,
                payer=self.public_key,
                asset_data=asset_data,
            ),
            mint_v1(
                mint=mint.pubkey(),
                authority=self.public_key,
                payer=self.public_key,
                token_owner=self.public_key,
            ),
        ]
        return self.send_and_confirm(instructions, [mint])

    def verify_collection(self, nft_mint: Pubkey, collection_mint: Pubkey) -> str:
        """
        Marks NFT as verified member of the collection. The identity must be
        the update authority of the collection.
        :return: transaction signature
        """
        metadata, _ = find_metadata_pda(nft_mint)
        logger.info(f"Verifying {nft_mint} as member of {collection_mint}...")
        instruction = verify_collection_v1(
            metadata=metadata,
            collection_mint=collection_mint,
            authority=self.public_key,
        )
        return self.send_and_confirm([instruction])

    def _get_account(self, address: Pubkey, owner: Pubkey, name: str) -> Optional[bytes]:
        account = self.rpc.get_account_info(address)
        if account is None:
            return None
        if account["owner"] != owner:
            raise UnexpectedAccountError(
                f"{name} '{address}' is owned by {account['owner']}, expected {owner}"
            )
        return account["data"]

    def fetch_digital_asset(self, mint: Pubkey) -> DigitalAsset:
        """
        Fetches mint, metadata and master edition (if any) of the asset.
        :param mint: mint address of the asset
        :return: DigitalAsset
        """
        logger.debug(f"Fetching digital asset {mint}")
        mint_data = self._get_account(mint, TOKEN_PROGRAM_ID, "Mint")
        if mint_data is None:
            raise AccountNotFoundError(mint, "Mint")
        metadata_address, _ = find_metadata_pda(mint)
        metadata_data = self._get_account(
            metadata_address, TOKEN_METADATA_PROGRAM_ID, "Metadata"
        )
        if metadata_data is None:
            raise AccountNotFoundError(metadata_address, "Metadata")
        edition_address, _ = find_master_edition_pda(mint)
        edition_data = self._get_account(
            edition_address, TOKEN_METADATA_PROGRAM_ID, "Master edition"
        )
        return DigitalAsset(
            public_key=mint,
            mint=Mint.from_bytes(mint, mint_data),
            metadata=Metadata.from_bytes(metadata_address, metadata_data),
            edition=(
                MasterEdition.from_bytes(edition_address, edition_data)
                if edition_data is not None
                else None
            ),
        )
