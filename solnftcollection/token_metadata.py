"""
Metaplex Token Metadata program: PDAs, instruction builders and account decoding.
Instructions use the token-standard-aware v1 interface (Create, Mint, Verify).
"""
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from solders.instruction import AccountMeta, Instruction
from solders.pubkey import Pubkey

from solnftcollection.exceptions import UnexpectedAccountError
from solnftcollection.layout import BorshReader, BorshWriter

TOKEN_METADATA_PROGRAM_ID = Pubkey.from_string(
    "metaqbxxUerdq28cj1RbAWkYQm3ybzjb6a8bt518x1s"
)
TOKEN_PROGRAM_ID = Pubkey.from_string("TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA")
ASSOCIATED_TOKEN_PROGRAM_ID = Pubkey.from_string(
    "ATokenGPvbdGVxr1b2hvZbsiqW5xWH25efTNsLJA8knL"
)
SYSTEM_PROGRAM_ID = Pubkey.from_string("11111111111111111111111111111111")
SYSVAR_INSTRUCTIONS_ID = Pubkey.from_string(
    "Sysvar1nstructions1111111111111111111111111"
)

MAX_NAME_LENGTH = 32
MAX_SYMBOL_LENGTH = 10
MAX_URI_LENGTH = 200
MAX_SELLER_FEE_BASIS_POINTS = 10_000

# instruction discriminators
CREATE_DISCRIMINATOR = 42
MINT_DISCRIMINATOR = 43
VERIFY_DISCRIMINATOR = 52

# account keys
KEY_MASTER_EDITION_V1 = 2
KEY_METADATA_V1 = 4
KEY_MASTER_EDITION_V2 = 6

VERIFICATION_ARGS_CREATOR_V1 = 0
VERIFICATION_ARGS_COLLECTION_V1 = 1

PRINT_SUPPLY_ZERO = 0
PRINT_SUPPLY_LIMITED = 1
PRINT_SUPPLY_UNLIMITED = 2

MINT_ACCOUNT_SIZE = 82


class TokenStandard:
    NonFungible = 0
    FungibleAsset = 1
    Fungible = 2
    NonFungibleEdition = 3
    ProgrammableNonFungible = 4


@dataclass
class Creator:
    address: Pubkey
    verified: bool
    share: int

    def write(self, writer: BorshWriter):
        writer.pubkey(self.address).bool(self.verified).u8(self.share)

    @classmethod
    def read(cls, reader: BorshReader) -> "Creator":
        return cls(reader.pubkey(), reader.bool(), reader.u8())


@dataclass
class Collection:
    key: Pubkey
    verified: bool = False

    def write(self, writer: BorshWriter):
        writer.bool(self.verified).pubkey(self.key)

    @classmethod
    def read(cls, reader: BorshReader) -> "Collection":
        verified = reader.bool()
        return cls(key=reader.pubkey(), verified=verified)


@dataclass
class Uses:
    use_method: int
    remaining: int
    total: int

    def write(self, writer: BorshWriter):
        writer.u8(self.use_method).u64(self.remaining).u64(self.total)

    @classmethod
    def read(cls, reader: BorshReader) -> "Uses":
        return cls(reader.u8(), reader.u64(), reader.u64())


@dataclass
class CollectionDetails:
    """Marks a metadata account as a collection root. kind 0 is V1 (sized), 1 is V2."""

    kind: int = 0
    size: int = 0

    def write(self, writer: BorshWriter):
        writer.u8(self.kind)
        if self.kind == 0:
            writer.u64(self.size)
        else:
            writer.raw(bytes(8))

    @classmethod
    def read(cls, reader: BorshReader) -> "CollectionDetails":
        kind = reader.u8()
        if kind == 0:
            return cls(kind=0, size=reader.u64())
        reader.raw(8)
        return cls(kind=kind)


@dataclass(frozen=True)
class PrintSupply:
    """How many prints the master edition allows. Only Limited carries max_supply."""

    kind: int = PRINT_SUPPLY_ZERO
    max_supply: int = 0

    def write(self, writer: BorshWriter):
        writer.u8(self.kind)
        if self.kind == PRINT_SUPPLY_LIMITED:
            writer.u64(self.max_supply)


@dataclass
class AssetData:
    name: str
    symbol: str
    uri: str
    seller_fee_basis_points: int
    creators: Optional[List[Creator]] = None
    primary_sale_happened: bool = False
    is_mutable: bool = True
    token_standard: int = TokenStandard.NonFungible
    collection: Optional[Collection] = None
    uses: Optional[Uses] = None
    collection_details: Optional[CollectionDetails] = None
    rule_set: Optional[Pubkey] = None

    def validate(self):
        if len(self.name.encode("utf-8")) > MAX_NAME_LENGTH:
            raise ValueError(f"Name is longer than {MAX_NAME_LENGTH} bytes: '{self.name}'")
        if len(self.symbol.encode("utf-8")) > MAX_SYMBOL_LENGTH:
            raise ValueError(
                f"Symbol is longer than {MAX_SYMBOL_LENGTH} bytes: '{self.symbol}'"
            )
        if len(self.uri.encode("utf-8")) > MAX_URI_LENGTH:
            raise ValueError(f"URI is longer than {MAX_URI_LENGTH} bytes")
        if not 0 <= self.seller_fee_basis_points <= MAX_SELLER_FEE_BASIS_POINTS:
            raise ValueError(
                f"Seller fee must be between 0 and {MAX_SELLER_FEE_BASIS_POINTS} "
                f"basis points, got {self.seller_fee_basis_points}"
            )
        if self.creators is not None and sum(c.share for c in self.creators) != 100:
            raise ValueError("Creator shares must add up to 100")

    def write(self, writer: BorshWriter):
        writer.string(self.name).string(self.symbol).string(self.uri)
        writer.u16(self.seller_fee_basis_points)
        writer.option(self.creators, lambda w, v: w.vec(v, lambda w2, c: c.write(w2)))
        writer.bool(self.primary_sale_happened).bool(self.is_mutable)
        writer.u8(self.token_standard)
        writer.option(self.collection, lambda w, v: v.write(w))
        writer.option(self.uses, lambda w, v: v.write(w))
        writer.option(self.collection_details, lambda w, v: v.write(w))
        writer.option(self.rule_set, BorshWriter.pubkey)

    @classmethod
    def read(cls, reader: BorshReader) -> "AssetData":
        return cls(
            name=reader.string(),
            symbol=reader.string(),
            uri=reader.string(),
            seller_fee_basis_points=reader.u16(),
            creators=reader.option(lambda r: r.vec(Creator.read)),
            primary_sale_happened=reader.bool(),
            is_mutable=reader.bool(),
            token_standard=reader.u8(),
            collection=reader.option(Collection.read),
            uses=reader.option(Uses.read),
            collection_details=reader.option(CollectionDetails.read),
            rule_set=reader.option(BorshReader.pubkey),
        )


def find_metadata_pda(mint: Pubkey) -> Tuple[Pubkey, int]:
    seeds = [b"metadata", bytes(TOKEN_METADATA_PROGRAM_ID), bytes(mint)]
    return Pubkey.find_program_address(seeds, TOKEN_METADATA_PROGRAM_ID)


def find_master_edition_pda(mint: Pubkey) -> Tuple[Pubkey, int]:
    seeds = [b"metadata", bytes(TOKEN_METADATA_PROGRAM_ID), bytes(mint), b"edition"]
    return Pubkey.find_program_address(seeds, TOKEN_METADATA_PROGRAM_ID)


def find_associated_token_pda(mint: Pubkey, owner: Pubkey) -> Tuple[Pubkey, int]:
    seeds = [bytes(owner), bytes(TOKEN_PROGRAM_ID), bytes(mint)]
    return Pubkey.find_program_address(seeds, ASSOCIATED_TOKEN_PROGRAM_ID)


def _optional(pubkey: Optional[Pubkey], is_signer=False, is_writable=False):
    # missing optional accounts are passed as the program id
    if pubkey is None:
        return AccountMeta(TOKEN_METADATA_PROGRAM_ID, False, False)
    return AccountMeta(pubkey, is_signer, is_writable)


def create_v1(
    mint: Pubkey,
    authority: Pubkey,
    payer: Pubkey,
    asset_data: AssetData,
    update_authority: Pubkey = None,
    decimals: Optional[int] = 0,
    print_supply: Optional[PrintSupply] = PrintSupply(PRINT_SUPPLY_ZERO),
) -> Instruction:
    """
    Creates metadata (and master edition for non-fungibles) for a new mint.
    The mint account must sign so the program can create it.
    :param mint: address of the mint to create
    :param authority: mint authority, signer
    :param payer: pays for the new accounts, signer
    :param asset_data: on-chain data of the asset
    :param update_authority: defaults to authority, signer
    :param decimals: None or decimals of the mint, NFTs use 0
    :param print_supply: None or PrintSupply, NFTs use PrintSupply(PRINT_SUPPLY_ZERO)
    :return: Instruction
    """
    asset_data.validate()
    if update_authority is None:
        update_authority = authority
    metadata, _ = find_metadata_pda(mint)
    master_edition = None
    if asset_data.token_standard in (
        TokenStandard.NonFungible,
        TokenStandard.ProgrammableNonFungible,
    ):
        master_edition, _ = find_master_edition_pda(mint)

    writer = BorshWriter().u8(CREATE_DISCRIMINATOR).u8(0)  # CreateArgs::V1
    asset_data.write(writer)
    writer.option(decimals, BorshWriter.u8)
    writer.option(print_supply, lambda w, v: v.write(w))

    accounts = [
        AccountMeta(metadata, False, True),
        _optional(master_edition, is_writable=True),
        AccountMeta(mint, True, True),
        AccountMeta(authority, True, False),
        AccountMeta(payer, True, True),
        AccountMeta(update_authority, True, False),
        AccountMeta(SYSTEM_PROGRAM_ID, False, False),
        AccountMeta(SYSVAR_INSTRUCTIONS_ID, False, False),
        AccountMeta(TOKEN_PROGRAM_ID, False, False),
    ]
    return Instruction(TOKEN_METADATA_PROGRAM_ID, writer.to_bytes(), accounts)


def mint_v1(
    mint: Pubkey,
    authority: Pubkey,
    payer: Pubkey,
    token_owner: Pubkey,
    amount: int = 1,
    token_standard: int = TokenStandard.NonFungible,
) -> Instruction:
    """
    Mints tokens of a mint created by create_v1 to the associated token account of token_owner.
    """
    if amount < 1:
        raise ValueError(f"Amount to mint must be positive, got {amount}")
    metadata, _ = find_metadata_pda(mint)
    token, _ = find_associated_token_pda(mint, token_owner)
    master_edition = None
    if token_standard in (
        TokenStandard.NonFungible,
        TokenStandard.ProgrammableNonFungible,
    ):
        master_edition, _ = find_master_edition_pda(mint)

    # MintArgs::V1 without authorization data
    data = (
        BorshWriter()
        .u8(MINT_DISCRIMINATOR)
        .u8(0)
        .u64(amount)
        .option(None, BorshWriter.raw)
        .to_bytes()
    )
    accounts = [
        AccountMeta(token, False, True),
        _optional(token_owner),
        AccountMeta(metadata, False, False),
        _optional(master_edition),
        _optional(None),  # token record
        AccountMeta(mint, False, True),
        AccountMeta(authority, True, False),
        _optional(None),  # delegate record
        AccountMeta(payer, True, True),
        AccountMeta(SYSTEM_PROGRAM_ID, False, False),
        AccountMeta(SYSVAR_INSTRUCTIONS_ID, False, False),
        AccountMeta(TOKEN_PROGRAM_ID, False, False),
        AccountMeta(ASSOCIATED_TOKEN_PROGRAM_ID, False, False),
        _optional(None),  # authorization rules program
        _optional(None),  # authorization rules
    ]
    return Instruction(TOKEN_METADATA_PROGRAM_ID, data, accounts)


def verify_collection_v1(
    metadata: Pubkey,
    collection_mint: Pubkey,
    authority: Pubkey,
) -> Instruction:
    """
    Marks collection of the item as verified. Authority must be the update authority
    of the collection, otherwise the program rejects the transaction.
    :param metadata: metadata PDA of the item
    :param collection_mint: mint of the collection
    :param authority: signer
    """
    collection_metadata, _ = find_metadata_pda(collection_mint)
    collection_master_edition, _ = find_master_edition_pda(collection_mint)
    data = (
        BorshWriter()
        .u8(VERIFY_DISCRIMINATOR)
        .u8(VERIFICATION_ARGS_COLLECTION_V1)
        .to_bytes()
    )
    accounts = [
        AccountMeta(authority, True, False),
        _optional(None),  # delegate record
        AccountMeta(metadata, False, True),
        AccountMeta(collection_mint, False, False),
        AccountMeta(collection_metadata, False, True),
        AccountMeta(collection_master_edition, False, False),
        AccountMeta(SYSTEM_PROGRAM_ID, False, False),
        AccountMeta(SYSVAR_INSTRUCTIONS_ID, False, False),
    ]
    return Instruction(TOKEN_METADATA_PROGRAM_ID, data, accounts)


@dataclass
class Metadata:
    public_key: Pubkey
    update_authority: Pubkey
    mint: Pubkey
    name: str
    symbol: str
    uri: str
    seller_fee_basis_points: int
    creators: Optional[List[Creator]]
    primary_sale_happened: bool
    is_mutable: bool
    edition_nonce: Optional[int] = None
    token_standard: Optional[int] = None
    collection: Optional[Collection] = None
    uses: Optional[Uses] = None
    collection_details: Optional[CollectionDetails] = None

    @property
    def is_collection(self) -> bool:
        return self.collection_details is not None

    @classmethod
    def from_bytes(cls, public_key: Pubkey, data: bytes) -> "Metadata":
        reader = BorshReader(data)
        key = reader.u8()
        if key != KEY_METADATA_V1:
            raise UnexpectedAccountError(
                f"Account '{public_key}' is not a metadata account (key {key})"
            )
        update_authority = reader.pubkey()
        mint = reader.pubkey()
        # name, symbol and uri are stored padded with zero bytes
        name = reader.string().rstrip("\x00")
        symbol = reader.string().rstrip("\x00")
        uri = reader.string().rstrip("\x00")
        return cls(
            public_key=public_key,
            update_authority=update_authority,
            mint=mint,
            name=name,
            symbol=symbol,
            uri=uri,
            seller_fee_basis_points=reader.u16(),
            creators=reader.option(lambda r: r.vec(Creator.read)),
            primary_sale_happened=reader.bool(),
            is_mutable=reader.bool(),
            edition_nonce=reader.option(BorshReader.u8),
            token_standard=reader.option(BorshReader.u8),
            collection=reader.option(Collection.read),
            uses=reader.option(Uses.read),
            collection_details=reader.option(CollectionDetails.read),
        )


@dataclass
class Mint:
    public_key: Pubkey
    mint_authority: Optional[Pubkey]
    supply: int
    decimals: int
    is_initialized: bool
    freeze_authority: Optional[Pubkey]

    @classmethod
    def from_bytes(cls, public_key: Pubkey, data: bytes) -> "Mint":
        if len(data) < MINT_ACCOUNT_SIZE:
            raise UnexpectedAccountError(
                f"Account '{public_key}' is not a mint account ({len(data)} bytes)"
            )
        reader = BorshReader(data)

        def c_option_pubkey():
            # SPL Token uses 4-byte option tags
            tag = reader.u32()
            value = reader.pubkey()
            return value if tag else None

        mint_authority = c_option_pubkey()
        supply = reader.u64()
        decimals = reader.u8()
        is_initialized = reader.bool()
        return cls(
            public_key=public_key,
            mint_authority=mint_authority,
            supply=supply,
            decimals=decimals,
            is_initialized=is_initialized,
            freeze_authority=c_option_pubkey(),
        )


@dataclass
class MasterEdition:
    public_key: Pubkey
    supply: int
    max_supply: Optional[int]

    @classmethod
    def from_bytes(cls, public_key: Pubkey, data: bytes) -> "MasterEdition":
        reader = BorshReader(data)
        key = reader.u8()
        if key not in (KEY_MASTER_EDITION_V1, KEY_MASTER_EDITION_V2):
            raise UnexpectedAccountError(
                f"Account '{public_key}' is not a master edition account (key {key})"
            )
        return cls(public_key, reader.u64(), reader.option(BorshReader.u64))


@dataclass
class DigitalAsset:
    public_key: Pubkey
    mint: Mint
    metadata: Metadata
    edition: Optional[MasterEdition] = field(default=None)
