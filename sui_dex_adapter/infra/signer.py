"""
Transaction signing and submission

SuiSigner holds an Ed25519 keypair and turns composed TransactionBlocks
into executed transactions: the node builds the transaction bytes, the
signer signs the intent message locally and submits the signature.
"""

import base64
import binascii
import hashlib
import json
import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union

import base58
from solders.keypair import Keypair

from ..errors import (
    DexAdapterError,
    ExecutionFailed,
    InsufficientBalance,
    InvalidKeyFormat,
    SignerError,
    SubmissionError,
    ConfigurationError,
)
from ..config import config as global_config
from ..types import (
    Address,
    CoinType,
    ExecutionResult,
    TransactionBlock,
    WaitMode,
    SUI_COIN_TYPE,
    require_positive,
)
from .cache import CacheNamespace, ResultCache
from .events import EventSink
from .retry import RetryInvoker, rpc_policy
from .rpc import SuiRpcClient

logger = logging.getLogger(__name__)

ED25519_FLAG = 0x00
# IntentScope::TransactionData, IntentVersion::V0, AppId::Sui
TRANSACTION_INTENT = bytes([0, 0, 0])
TRANSACTION_DIGEST_SALT = b"TransactionData::"


def _blake2b256(data: bytes) -> bytes:
    return hashlib.blake2b(data, digest_size=32).digest()


def derive_address(public_key: bytes) -> Address:
    """Sui address of an Ed25519 public key: blake2b-256(flag || pubkey)"""
    return Address("0x" + _blake2b256(bytes([ED25519_FLAG]) + public_key).hex())


def transaction_digest(tx_bytes: bytes) -> str:
    """Base58 transaction digest computed from BCS transaction bytes"""
    return base58.b58encode(_blake2b256(TRANSACTION_DIGEST_SALT + tx_bytes)).decode("ascii")


def parse_private_key(raw: str) -> Keypair:
    """
    Parse private key material into a keypair

    Accepted encodings:
    - base64 of a 32-byte seed
    - base64 of 33 bytes: scheme flag (0x00, Ed25519) + seed, as in sui.keystore
    - base64 of a 64-byte secret key (seed + public key)
    - "0x" + 64 hex characters (seed)

    Raises:
        InvalidKeyFormat: anything else
    """
    if not isinstance(raw, str) or not raw.strip():
        raise InvalidKeyFormat("empty key")
    value = raw.strip()

    if value[:2] in ("0x", "0X"):
        body = value[2:]
        if len(body) != 64:
            raise InvalidKeyFormat(f"hex seed must be 64 characters, got {len(body)}")
        try:
            seed = bytes.fromhex(body)
        except ValueError:
            raise InvalidKeyFormat("hex seed contains non-hex characters")
        return Keypair.from_seed(seed)

    try:
        decoded = base64.b64decode(value, validate=True)
    except (binascii.Error, ValueError):
        raise InvalidKeyFormat("not valid base64 or 0x-prefixed hex")

    if len(decoded) == 32:
        return Keypair.from_seed(decoded)
    if len(decoded) == 33:
        if decoded[0] != ED25519_FLAG:
            raise InvalidKeyFormat(f"unsupported signature scheme flag {decoded[0]:#04x}")
        return Keypair.from_seed(decoded[1:])
    if len(decoded) == 64:
        try:
            return Keypair.from_bytes(decoded)
        except Exception as e:
            raise InvalidKeyFormat(f"64-byte secret key rejected: {e}")
    raise InvalidKeyFormat(f"decoded key has {len(decoded)} bytes, expected 32, 33 or 64")


@dataclass(frozen=True)
class CoinObject:
    """A spendable coin object"""
    object_id: Address
    coin_type: CoinType
    balance: int
    version: str = ""
    digest: str = ""

    @classmethod
    def from_rpc(cls, data: Dict[str, Any]) -> "CoinObject":
        return cls(
            object_id=Address(data["coinObjectId"]),
            coin_type=CoinType(data["coinType"]),
            balance=int(data.get("balance", 0)),
            version=str(data.get("version", "")),
            digest=data.get("digest", ""),
        )


class SuiSigner:
    """
    Local Ed25519 signer bound to one wallet

    Usage:
        signer = SuiSigner(private_key, rpc, cache=cache, events=events)
        result = await signer.finalize_and_submit(tx)
        print(result.digest)
    """

    def __init__(
        self,
        private_key: Union[str, Keypair],
        rpc: SuiRpcClient,
        cache: Optional[ResultCache] = None,
        events: Optional[EventSink] = None,
        invoker: Optional[RetryInvoker] = None,
        wait_mode: Optional[WaitMode] = None,
        gas_budget: Optional[int] = None,
    ):
        """
        Args:
            private_key: Key material (see parse_private_key) or a Keypair
            rpc: RPC client
            cache: Optional cache for balances
            events: Event sink
            invoker: Retry invoker used for read calls
            wait_mode: Default execution wait mode (TX_WAIT_MODE otherwise)
            gas_budget: Default gas budget for single-purpose transactions
        """
        self._keypair = private_key if isinstance(private_key, Keypair) else parse_private_key(private_key)
        self._public_key = bytes(self._keypair.pubkey())
        self._address = derive_address(self._public_key)
        self._rpc = rpc
        self._cache = cache
        self._events = events or EventSink()
        self._invoker = invoker or RetryInvoker(events=self._events)
        self._wait_mode = wait_mode or WaitMode.from_name(global_config.tx.wait_mode)
        self._gas_budget = gas_budget or global_config.tx.gas_budget

    @property
    def address(self) -> Address:
        return self._address

    @property
    def public_key(self) -> str:
        """Public key (base64)"""
        return base64.b64encode(self._public_key).decode("ascii")

    def __repr__(self) -> str:
        return f"SuiSigner({self._address[:10]}...)"

    # ========== Balances ==========

    async def balance(self, coin_type: Union[str, CoinType] = SUI_COIN_TYPE) -> int:
        """
        Total balance of a coin type in base units

        Best effort: returns 0 when the lookup fails.
        """
        coin_type = CoinType(coin_type)

        async def _fetch() -> int:
            return await self._invoker.invoke(
                lambda: self._rpc.get_balance(self._address, coin_type),
                rpc_policy(),
                "get_balance",
            )

        try:
            if self._cache is not None:
                return await self._cache.get_or_populate(
                    CacheNamespace.BALANCE, f"{self._address}:{coin_type}", _fetch
                )
            return await _fetch()
        except DexAdapterError as e:
            logger.warning(f"Balance lookup failed for {coin_type}: {e}")
            return 0

    async def all_balances(self) -> Dict[CoinType, int]:
        """All coin balances; {} when the lookup fails"""
        try:
            rows = await self._invoker.invoke(
                lambda: self._rpc.get_all_balances(self._address),
                rpc_policy(),
                "get_all_balances",
            )
        except DexAdapterError as e:
            logger.warning(f"Balance listing failed for {self._address}: {e}")
            return {}
        return {CoinType(row["coinType"]): int(row.get("totalBalance", 0)) for row in rows}

    async def has_sufficient_balance(self, amount: int, coin_type: Union[str, CoinType] = SUI_COIN_TYPE) -> bool:
        return await self.balance(coin_type) >= amount

    async def coin_objects(self, coin_type: Union[str, CoinType] = SUI_COIN_TYPE) -> List[CoinObject]:
        """
        Spendable coin objects of a type

        Raises:
            RpcError / RetryExhausted: lookup failures propagate
        """
        coin_type = CoinType(coin_type)
        rows = await self._invoker.invoke(
            lambda: self._rpc.get_coins(self._address, coin_type),
            rpc_policy(),
            "get_coins",
        )
        return [CoinObject.from_rpc(row) for row in rows]

    async def _first_covering_coin(self, amount: int, coin_type: CoinType) -> CoinObject:
        coins = await self.coin_objects(coin_type)
        for coin in coins:
            if coin.balance >= amount:
                return coin
        largest = max((c.balance for c in coins), default=0)
        raise InsufficientBalance.no_coin_covers(str(coin_type), amount, largest)

    # ========== Signing ==========

    def sign_transaction(self, tx_bytes: Union[bytes, str]) -> str:
        """
        Sign transaction bytes

        Signs blake2b-256(intent || tx_bytes) and returns the serialized
        signature: base64(flag || signature || public key).
        """
        if isinstance(tx_bytes, str):
            tx_bytes = base64.b64decode(tx_bytes)
        digest = _blake2b256(TRANSACTION_INTENT + tx_bytes)
        signature = bytes(self._keypair.sign_message(digest))
        serialized = bytes([ED25519_FLAG]) + signature + self._public_key
        return base64.b64encode(serialized).decode("ascii")

    # ========== Submission ==========

    async def build(self, tx: TransactionBlock) -> str:
        """Have the node assemble transaction bytes for a block (base64)"""
        tx.set_sender(self._address)
        tx.seal()
        return await self._rpc.batch_transaction(
            str(self._address),
            tx.to_rpc_params(),
            tx.gas_budget,
            gas=str(tx.gas_payment) if tx.gas_payment else None,
        )

    async def finalize_and_submit(
        self,
        tx: TransactionBlock,
        options: Optional[Dict[str, bool]] = None,
        wait_mode: Optional[WaitMode] = None,
    ) -> ExecutionResult:
        """
        Sign and execute a composed transaction

        Sets the sender, seals the block, builds bytes through the node,
        signs them and executes.

        Raises:
            SubmissionError: signing failed
            ExecutionFailed: the chain reported a failure status
            RpcError: build or execute rejected by the node
        """
        tx_bytes = await self.build(tx)
        return await self._sign_and_execute(tx_bytes, options, wait_mode, f"{len(tx)} step(s)")

    async def _sign_and_execute(
        self,
        tx_bytes: str,
        options: Optional[Dict[str, bool]],
        wait_mode: Optional[WaitMode],
        label: str,
    ) -> ExecutionResult:
        try:
            signature = self.sign_transaction(tx_bytes)
        except Exception as e:
            raise SubmissionError(f"signing failed: {e}", original_error=e) from e

        local_digest = transaction_digest(base64.b64decode(tx_bytes))
        mode = wait_mode or self._wait_mode
        logger.info(f"Submitting transaction {local_digest} ({label}, {mode.value})")

        payload = await self._rpc.execute_transaction_block(
            tx_bytes, [signature], options, mode.value
        )
        result = ExecutionResult.from_rpc(payload)
        if result.digest and result.digest != local_digest:
            logger.warning(f"Digest mismatch: local {local_digest}, node {result.digest}")
        if not result.digest:
            result.digest = local_digest

        if self._cache is not None:
            self._cache.invalidate_wallet_data(self._address)

        self._events.emit(
            "transaction_executed",
            digest=result.digest,
            status=result.status.value,
            gas_used=result.gas_used.total,
        )

        if result.is_failure:
            raise ExecutionFailed(result.error or "unknown error", result.digest, result)
        if not result.is_success:
            logger.warning(f"Transaction {result.digest} submitted, node reply has no effects status")
        return result

    async def estimate_gas(self, tx: TransactionBlock) -> int:
        """
        Gas estimate via dry run: computation + storage cost

        Both RPC calls run under the RPC retry preset. Returns 0 when the
        dry run still fails.
        """
        async def _dry_run() -> Dict[str, Any]:
            tx_bytes = await self._rpc.batch_transaction(
                str(self._address), tx.to_rpc_params(), tx.gas_budget
            )
            return await self._rpc.dry_run_transaction_block(tx_bytes)

        try:
            dry_run = await self._invoker.invoke(_dry_run, rpc_policy(), "dry_run")
        except DexAdapterError as e:
            logger.warning(f"Gas estimation failed: {e}")
            return 0
        gas = (dry_run.get("effects") or {}).get("gasUsed") or {}
        return int(gas.get("computationCost", 0)) + int(gas.get("storageCost", 0))

    # ========== Coin Management ==========

    async def split_coins(
        self,
        amount: int,
        coin_type: Union[str, CoinType] = SUI_COIN_TYPE,
    ) -> ExecutionResult:
        """
        Split a new coin of `amount` off the first coin that covers it

        Raises:
            InvalidParameters: amount is not a positive integer
            InsufficientBalance: no single coin holds enough
        """
        require_positive(amount, "amount")
        coin_type = CoinType(coin_type)
        coin = await self._first_covering_coin(amount, coin_type)
        tx_bytes = await self._rpc.split_coin(
            str(self._address), str(coin.object_id), [amount], self._gas_budget
        )
        return await self._sign_and_execute(tx_bytes, None, None, f"split {amount}")

    async def transfer_coins(
        self,
        recipient: Union[str, Address],
        amount: int,
        coin_type: Union[str, CoinType] = SUI_COIN_TYPE,
    ) -> ExecutionResult:
        """
        Transfer `amount` to recipient from the first coin that covers it

        Raises:
            InvalidParameters: amount is not a positive integer
            InsufficientBalance: no single coin holds enough
        """
        require_positive(amount, "amount")
        recipient = Address(recipient)
        coin_type = CoinType(coin_type)
        coin = await self._first_covering_coin(amount, coin_type)
        if coin_type == SUI_COIN_TYPE:
            tx_bytes = await self._rpc.pay_sui(
                str(self._address), [str(coin.object_id)], [str(recipient)], [amount], self._gas_budget
            )
        else:
            tx_bytes = await self._rpc.pay(
                str(self._address), [str(coin.object_id)], [str(recipient)], [amount], self._gas_budget
            )
        return await self._sign_and_execute(tx_bytes, None, None, f"transfer {amount}")

    # ========== Construction ==========

    @classmethod
    def from_keystore(cls, path: str, rpc: SuiRpcClient, index: int = 0, **kwargs) -> "SuiSigner":
        """
        Create signer from a sui.keystore file

        The keystore is a JSON array of base64 flagged keys.
        """
        with open(path, "r", encoding="utf-8") as f:
            try:
                entries = json.load(f)
            except json.JSONDecodeError as e:
                raise ConfigurationError.invalid("keystore", f"Cannot parse keystore file {path}: {e}")
        if not isinstance(entries, list) or not entries:
            raise ConfigurationError.invalid("keystore", f"Keystore {path} has no keys")
        if index >= len(entries):
            raise ConfigurationError.invalid("keystore", f"Key index {index} out of range ({len(entries)} keys)")
        return cls(entries[index], rpc, **kwargs)


def create_signer(
    rpc: SuiRpcClient,
    private_key: Optional[str] = None,
    keystore_path: Optional[str] = None,
    **kwargs,
) -> SuiSigner:
    """
    Create signer based on configuration

    Priority:
    1. private_key argument
    2. keystore_path argument
    3. SUI_PRIVATE_KEY, then SUI_KEYSTORE_PATH from config

    Raises:
        SignerError: If no valid signer configuration found
    """
    if private_key:
        return SuiSigner(private_key, rpc, **kwargs)
    if keystore_path:
        return SuiSigner.from_keystore(keystore_path, rpc, **kwargs)

    if global_config.signer.private_key:
        return SuiSigner(global_config.signer.private_key, rpc, **kwargs)
    if global_config.signer.keystore_path and os.path.isfile(global_config.signer.keystore_path):
        return SuiSigner.from_keystore(global_config.signer.keystore_path, rpc, **kwargs)

    raise SignerError.not_configured()
