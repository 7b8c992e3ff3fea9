from __future__ import annotations

import logging
import struct
from dataclasses import dataclass
from typing import List, Optional

import httpx
from solders.hash import Hash
from solders.instruction import AccountMeta, Instruction
from solders.keypair import Keypair
from solders.message import Message
from solders.pubkey import Pubkey
from solders.signature import Signature
from solders.transaction import Transaction

from .errors import InsufficientBalanceError
from .metadata import TokenSpec, upload_metadata
from .project_constants import (
    ASSOCIATED_TOKEN_PROGRAM_ID,
    BONDING_CURVE_SEED,
    CREATE_INSTRUCTION_DISCRIMINATOR,
    EVENT_AUTHORITY_SEED,
    GLOBAL_ACCOUNT_SEED,
    LAMPORTS_PER_SOL,
    METADATA_SEED,
    MIN_REQUIRED_LAMPORTS,
    MINT_AUTHORITY_SEED,
    MPL_TOKEN_METADATA_PROGRAM_ID,
    PUMP_FUN_PROGRAM_ID,
    RENT_SYSVAR_ID,
    SYSTEM_PROGRAM_ID,
    TOKEN_PROGRAM_ID,
)
from .rpc import RpcClient

log = logging.getLogger(__name__)

PROGRAM = Pubkey.from_string(PUMP_FUN_PROGRAM_ID)
MPL_PROGRAM = Pubkey.from_string(MPL_TOKEN_METADATA_PROGRAM_ID)
SYSTEM_PROGRAM = Pubkey.from_string(SYSTEM_PROGRAM_ID)
TOKEN_PROGRAM = Pubkey.from_string(TOKEN_PROGRAM_ID)
ATA_PROGRAM = Pubkey.from_string(ASSOCIATED_TOKEN_PROGRAM_ID)
RENT_SYSVAR = Pubkey.from_string(RENT_SYSVAR_ID)


def to_sol(lamports: int) -> float:
    return lamports / LAMPORTS_PER_SOL


def global_pda() -> Pubkey:
    return Pubkey.find_program_address([GLOBAL_ACCOUNT_SEED], PROGRAM)[0]


def mint_authority_pda() -> Pubkey:
    return Pubkey.find_program_address([MINT_AUTHORITY_SEED], PROGRAM)[0]


def event_authority_pda() -> Pubkey:
    return Pubkey.find_program_address([EVENT_AUTHORITY_SEED], PROGRAM)[0]


def bonding_curve_pda(mint: Pubkey) -> Pubkey:
    return Pubkey.find_program_address([BONDING_CURVE_SEED, bytes(mint)], PROGRAM)[0]


def metadata_pda(mint: Pubkey) -> Pubkey:
    return Pubkey.find_program_address(
        [METADATA_SEED, bytes(MPL_PROGRAM), bytes(mint)], MPL_PROGRAM
    )[0]


def associated_token_address(owner: Pubkey, mint: Pubkey) -> Pubkey:
    # ATA = PDA([owner, token program, mint]) under the associated token program
    return Pubkey.find_program_address(
        [bytes(owner), bytes(TOKEN_PROGRAM), bytes(mint)], ATA_PROGRAM
    )[0]


def _borsh_string(value: str) -> bytes:
    raw = value.encode("utf-8")
    return struct.pack("<I", len(raw)) + raw


def encode_create_args(name: str, symbol: str, uri: str, creator: Pubkey) -> bytes:
    """discriminator | name | symbol | uri | creator (32 bytes)"""
    return (
        CREATE_INSTRUCTION_DISCRIMINATOR
        + _borsh_string(name)
        + _borsh_string(symbol)
        + _borsh_string(uri)
        + bytes(creator)
    )


def build_create_instruction(
    mint: Pubkey, user: Pubkey, name: str, symbol: str, uri: str
) -> Instruction:
    bonding_curve = bonding_curve_pda(mint)
    accounts: List[AccountMeta] = [
        AccountMeta(mint, is_signer=True, is_writable=True),
        AccountMeta(mint_authority_pda(), is_signer=False, is_writable=False),
        AccountMeta(bonding_curve, is_signer=False, is_writable=True),
        AccountMeta(
            associated_token_address(bonding_curve, mint),
            is_signer=False,
            is_writable=True,
        ),
        AccountMeta(global_pda(), is_signer=False, is_writable=False),
        AccountMeta(MPL_PROGRAM, is_signer=False, is_writable=False),
        AccountMeta(metadata_pda(mint), is_signer=False, is_writable=True),
        AccountMeta(user, is_signer=True, is_writable=True),
        AccountMeta(SYSTEM_PROGRAM, is_signer=False, is_writable=False),
        AccountMeta(TOKEN_PROGRAM, is_signer=False, is_writable=False),
        AccountMeta(ATA_PROGRAM, is_signer=False, is_writable=False),
        AccountMeta(RENT_SYSVAR, is_signer=False, is_writable=False),
        AccountMeta(event_authority_pda(), is_signer=False, is_writable=False),
        AccountMeta(PROGRAM, is_signer=False, is_writable=False),
    ]
    data = encode_create_args(name, symbol, uri, user)
    return Instruction(PROGRAM, data, accounts)


def build_create_transaction(
    payer: Keypair, mint: Keypair, token: TokenSpec, uri: str, blockhash: str
) -> Transaction:
    ix = build_create_instruction(
        mint.pubkey(), payer.pubkey(), token.name, token.symbol, uri
    )
    recent = Hash.from_string(blockhash)
    message = Message.new_with_blockhash([ix], payer.pubkey(), recent)
    return Transaction([payer, mint], message, recent)


@dataclass(frozen=True)
class LaunchResult:
    signature: str
    mint: str
    vanity: bool
    dry_run: bool


class TokenCreator:
    def __init__(
        self,
        rpc: RpcClient,
        payer: Keypair,
        http: httpx.Client,
        dry_run: bool = False,
        confirm_timeout_s: float = 60.0,
    ) -> None:
        self.rpc = rpc
        self.payer = payer
        self.http = http
        self.dry_run = dry_run
        self.confirm_timeout_s = confirm_timeout_s

    @property
    def wallet_address(self) -> str:
        return str(self.payer.pubkey())

    def get_wallet_balance(self) -> int:
        """Returns the payer balance in lamports."""
        return self.rpc.get_balance(self.wallet_address)

    def check_balance(self) -> int:
        """Raises InsufficientBalanceError below MIN_REQUIRED_LAMPORTS."""
        balance = self.get_wallet_balance()
        log.info("Wallet balance: %.4f SOL", to_sol(balance))
        if balance < MIN_REQUIRED_LAMPORTS:
            raise InsufficientBalanceError(
                f"Insufficient wallet balance. Current: {to_sol(balance):.4f} SOL, "
                f"Required: {to_sol(MIN_REQUIRED_LAMPORTS):.2f} SOL. "
                "Please add more SOL to your wallet."
            )
        return balance

    def create_token(
        self, token: TokenSpec, mint_keypair: Optional[Keypair] = None
    ) -> LaunchResult:
        vanity = mint_keypair is not None
        mint = mint_keypair if mint_keypair is not None else Keypair()
        mint_address = str(mint.pubkey())

        log.info("Creating token...")
        log.info("   Name        : %s", token.name)
        log.info("   Symbol      : %s", token.symbol)
        log.info("   Mint address: %s%s", mint_address, " (vanity)" if vanity else "")

        self.check_balance()

        uri = upload_metadata(self.http, token)
        log.info("Metadata uploaded to: %s", uri)

        blockhash = self.rpc.get_latest_blockhash()
        tx = build_create_transaction(self.payer, mint, token, uri, blockhash)

        if self.dry_run:
            log.info("DRY RUN MODE - Not sending transaction")
            log.info("   Would create token at address: %s", mint_address)
            return LaunchResult(
                signature=str(Signature.default()),
                mint=mint_address,
                vanity=vanity,
                dry_run=True,
            )

        log.info("Sending transaction...")
        signature = self.rpc.send_transaction(bytes(tx))
        level = self.rpc.confirm_transaction(signature, timeout_s=self.confirm_timeout_s)
        log.info("Transaction %s reached %s", signature, level)
        return LaunchResult(
            signature=signature, mint=mint_address, vanity=vanity, dry_run=False
        )
