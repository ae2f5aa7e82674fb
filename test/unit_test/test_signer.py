"""
Unit tests for SuiSigner: key parsing, signing, submission and coin management
"""

import base64
import hashlib
import json
from unittest.mock import patch

import pytest
from solders.keypair import Keypair
from solders.signature import Signature

from conftest import SUI, USDC, TEST_SEED, TEST_PRIVATE_KEY
from sui_dex_adapter.errors import (
    ErrorCode,
    ExecutionFailed,
    InsufficientBalance,
    InvalidParameters,
    InvalidKeyFormat,
    RpcError,
    SignerError,
    SubmissionError,
    TransactionError,
)
from sui_dex_adapter.infra import (
    CacheNamespace,
    SuiSigner,
    create_signer,
    derive_address,
    parse_private_key,
    rpc_policy,
    transaction_digest,
)
from sui_dex_adapter.types import (
    TransactionAction,
    TransactionBlock,
    TransactionStep,
    TxStatus,
    WaitMode,
    normalize,
)

TX_BYTES = b"\x00\x00transaction-data"
TX_B64 = base64.b64encode(TX_BYTES).decode("ascii")


def b64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def effects(status="success", error=None, computation=1000, storage=500, rebate=100):
    status_info = {"status": status}
    if error:
        status_info["error"] = error
    return {
        "digest": transaction_digest(TX_BYTES),
        "effects": {
            "status": status_info,
            "gasUsed": {
                "computationCost": str(computation),
                "storageCost": str(storage),
                "storageRebate": str(rebate),
            },
        },
    }


def coin(object_id: str, balance: int, coin_type: str = SUI) -> dict:
    return {"coinObjectId": object_id, "coinType": coin_type, "balance": str(balance), "version": "1"}


def simple_block() -> TransactionBlock:
    tx = TransactionBlock(gas_budget=5_000)
    tx.add(TransactionStep(
        action=TransactionAction.SWAP,
        dex="cetus",
        package_id=normalize("0x1eab"),
        module="clmm",
        function="swap",
    ))
    return tx


def rejected() -> RpcError:
    return RpcError("rejected", ErrorCode.RPC_REQUEST_REJECTED, recoverable=False)


@pytest.fixture
def signer(rpc, cache, events, invoker):
    return SuiSigner(
        TEST_PRIVATE_KEY,
        rpc,
        cache=cache,
        events=events,
        invoker=invoker,
        wait_mode=WaitMode.LOCAL_EXECUTION,
        gas_budget=1_000,
    )


# ========== Keys ==========

class TestKeyParsing:

    def test_all_encodings_give_same_address(self):
        secret = bytes(Keypair.from_seed(TEST_SEED))
        encodings = [
            TEST_PRIVATE_KEY,
            b64(bytes([0]) + TEST_SEED),
            b64(secret),
            "0x" + TEST_SEED.hex(),
            "  0x" + TEST_SEED.hex().upper() + "\n",
        ]
        addresses = {str(derive_address(bytes(parse_private_key(e).pubkey()))) for e in encodings}
        assert len(addresses) == 1

    def test_address_derivation(self):
        pubkey = bytes(Keypair.from_seed(TEST_SEED).pubkey())
        expected = "0x" + hashlib.blake2b(b"\x00" + pubkey, digest_size=32).hexdigest()
        assert derive_address(pubkey) == expected
        assert len(expected) == 66

    @pytest.mark.parametrize("raw", [
        "",
        "0x1234",
        "0x" + "zz" * 32,
        "not base64 !!",
        b64(bytes(16)),
        b64(bytes([1]) + TEST_SEED),
    ])
    def test_invalid_keys(self, raw):
        with pytest.raises(InvalidKeyFormat) as exc_info:
            parse_private_key(raw)
        assert exc_info.value.code == ErrorCode.SIGNER_INVALID_KEY

    def test_signer_exposes_public_key(self, signer):
        pubkey = bytes(Keypair.from_seed(TEST_SEED).pubkey())
        assert signer.public_key == b64(pubkey)
        assert signer.address == derive_address(pubkey)


# ========== Signing ==========

def test_signature_layout_and_validity(signer):
    serialized = base64.b64decode(signer.sign_transaction(TX_B64))

    assert len(serialized) == 1 + 64 + 32
    assert serialized[0] == 0x00
    keypair = Keypair.from_seed(TEST_SEED)
    assert serialized[65:] == bytes(keypair.pubkey())

    message = hashlib.blake2b(bytes([0, 0, 0]) + TX_BYTES, digest_size=32).digest()
    signature = Signature.from_bytes(serialized[1:65])
    assert signature.verify(keypair.pubkey(), message)


def test_sign_accepts_raw_bytes(signer):
    assert signer.sign_transaction(TX_BYTES) == signer.sign_transaction(TX_B64)


# ========== Submission ==========

@pytest.mark.asyncio
async def test_finalize_and_submit(signer, rpc, events, cache):
    rpc.batch_transaction.return_value = TX_B64
    rpc.execute_transaction_block.return_value = effects()
    cache.set(CacheNamespace.BALANCE, f"{signer.address}:{SUI}", 99)
    tx = simple_block()

    result = await signer.finalize_and_submit(tx)

    assert result.is_success
    assert result.digest == transaction_digest(TX_BYTES)
    assert tx.sealed
    assert tx.sender == signer.address

    args = rpc.batch_transaction.await_args.args
    assert args[0] == str(signer.address)
    assert args[2] == 5_000

    tx_bytes, signatures, options, request_type = rpc.execute_transaction_block.await_args.args
    assert tx_bytes == TX_B64
    assert signatures == [signer.sign_transaction(TX_B64)]
    assert request_type == "WaitForLocalExecution"

    executed = events.of("transaction_executed")[0]
    assert executed["status"] == "success"
    assert executed["gas_used"] == 1400
    assert cache.keys(CacheNamespace.BALANCE) == []


@pytest.mark.asyncio
async def test_submit_with_wait_mode_override(signer, rpc):
    rpc.batch_transaction.return_value = TX_B64
    rpc.execute_transaction_block.return_value = effects()

    await signer.finalize_and_submit(simple_block(), wait_mode=WaitMode.EFFECTS_CERT)

    assert rpc.execute_transaction_block.await_args.args[3] == "WaitForEffectsCert"


@pytest.mark.asyncio
async def test_failed_status_raises(signer, rpc, events):
    rpc.batch_transaction.return_value = TX_B64
    rpc.execute_transaction_block.return_value = effects("failure", "MoveAbort(0x1eab::clmm, 3)")

    with pytest.raises(ExecutionFailed) as exc_info:
        await signer.finalize_and_submit(simple_block())

    assert exc_info.value.reason == "MoveAbort(0x1eab::clmm, 3)"
    assert exc_info.value.digest == transaction_digest(TX_BYTES)
    assert not exc_info.value.result.is_success
    assert events.of("transaction_executed")[0]["status"] == "failure"


@pytest.mark.asyncio
async def test_reply_without_effects_is_not_a_failure(signer, rpc, events):
    rpc.batch_transaction.return_value = TX_B64
    rpc.execute_transaction_block.return_value = {"digest": transaction_digest(TX_BYTES), "events": []}

    result = await signer.finalize_and_submit(simple_block(), options={"showEvents": True})

    assert result.status == TxStatus.UNKNOWN
    assert not result.is_success
    assert not result.is_failure
    assert result.digest == transaction_digest(TX_BYTES)
    assert events.of("transaction_executed")[0]["status"] == "unknown"


@pytest.mark.asyncio
async def test_signing_failure_is_submission_error(signer, rpc):
    rpc.batch_transaction.return_value = "abc"

    with pytest.raises(SubmissionError) as exc_info:
        await signer.finalize_and_submit(simple_block())

    assert exc_info.value.code == ErrorCode.TX_SEND_FAILED
    rpc.execute_transaction_block.assert_not_awaited()


@pytest.mark.asyncio
async def test_empty_block_is_rejected_before_build(signer, rpc):
    with pytest.raises(TransactionError):
        await signer.finalize_and_submit(TransactionBlock(gas_budget=1))
    rpc.batch_transaction.assert_not_awaited()


# ========== Gas ==========

@pytest.mark.asyncio
async def test_estimate_gas(signer, rpc):
    rpc.batch_transaction.return_value = TX_B64
    rpc.dry_run_transaction_block.return_value = effects(computation=1200, storage=3000)

    assert await signer.estimate_gas(simple_block()) == 4200


@pytest.mark.asyncio
async def test_estimate_gas_failure_returns_zero(signer, rpc):
    rpc.batch_transaction.side_effect = rejected()

    assert await signer.estimate_gas(simple_block()) == 0


@pytest.mark.asyncio
async def test_estimate_gas_retries_transient_errors(signer, rpc, sleeps):
    rpc.batch_transaction.side_effect = [RpcError.timeout("node", 30), TX_B64, TX_B64]
    rpc.dry_run_transaction_block.side_effect = [RpcError.timeout("node", 30), effects(computation=1200, storage=3000)]

    assert await signer.estimate_gas(simple_block()) == 4200
    assert rpc.batch_transaction.await_count == 3
    assert len(sleeps.delays) == 2


@pytest.mark.asyncio
async def test_estimate_gas_zero_after_exhaustion(signer, rpc, sleeps):
    rpc.dry_run_transaction_block.side_effect = RpcError.timeout("node", 30)
    rpc.batch_transaction.return_value = TX_B64

    assert await signer.estimate_gas(simple_block()) == 0
    assert rpc.dry_run_transaction_block.await_count == rpc_policy().max_attempts


# ========== Balances ==========

@pytest.mark.asyncio
async def test_balance_is_cached(signer, rpc):
    rpc.get_balance.return_value = 123

    assert await signer.balance() == 123
    assert await signer.balance(SUI) == 123
    rpc.get_balance.assert_awaited_once()
    assert await signer.has_sufficient_balance(100)
    assert not await signer.has_sufficient_balance(124)


@pytest.mark.asyncio
async def test_balance_failure_returns_zero(signer, rpc):
    rpc.get_balance.side_effect = rejected()
    assert await signer.balance(USDC) == 0


@pytest.mark.asyncio
async def test_all_balances(signer, rpc):
    rpc.get_all_balances.return_value = [
        {"coinType": SUI, "totalBalance": "5"},
        {"coinType": USDC, "totalBalance": "7"},
    ]
    balances = await signer.all_balances()
    assert balances[normalize("0x2") + "::sui::SUI"] == 5
    assert balances[USDC] == 7


@pytest.mark.asyncio
async def test_all_balances_failure_returns_empty(signer, rpc):
    rpc.get_all_balances.side_effect = rejected()
    assert await signer.all_balances() == {}


@pytest.mark.asyncio
async def test_coin_objects_propagate_errors(signer, rpc):
    rpc.get_coins.side_effect = rejected()
    with pytest.raises(RpcError):
        await signer.coin_objects()


# ========== Coin management ==========

@pytest.mark.asyncio
async def test_split_uses_first_covering_coin(signer, rpc):
    rpc.get_coins.return_value = [coin("0x1", 100), coin("0x2", 5_000), coin("0x3", 9_000)]
    rpc.split_coin.return_value = TX_B64
    rpc.execute_transaction_block.return_value = effects()

    result = await signer.split_coins(1_000)

    assert result.is_success
    rpc.split_coin.assert_awaited_once_with(str(signer.address), normalize("0x2"), [1_000], 1_000)


@pytest.mark.asyncio
async def test_split_without_covering_coin(signer, rpc):
    rpc.get_coins.return_value = [coin("0x1", 100), coin("0x2", 5_000)]

    with pytest.raises(InsufficientBalance) as exc_info:
        await signer.split_coins(10_000)

    assert exc_info.value.required == 10_000
    assert exc_info.value.available == 5_000
    rpc.split_coin.assert_not_awaited()


@pytest.mark.asyncio
@pytest.mark.parametrize("amount", [0, -5, 1.5, True])
async def test_coin_operations_reject_bad_amounts(signer, rpc, amount):
    rpc.get_coins.return_value = [coin("0x1", 100)]

    with pytest.raises(InvalidParameters):
        await signer.split_coins(amount)
    with pytest.raises(InvalidParameters):
        await signer.transfer_coins("0xb0b", amount)

    rpc.get_coins.assert_not_awaited()
    rpc.split_coin.assert_not_awaited()
    rpc.pay_sui.assert_not_awaited()
    rpc.execute_transaction_block.assert_not_awaited()


@pytest.mark.asyncio
async def test_transfer_sui_uses_pay_sui(signer, rpc):
    rpc.get_coins.return_value = [coin("0x5", 50_000)]
    rpc.pay_sui.return_value = TX_B64
    rpc.execute_transaction_block.return_value = effects()

    await signer.transfer_coins("0xb0b", 2_000)

    rpc.pay_sui.assert_awaited_once_with(
        str(signer.address), [normalize("0x5")], [normalize("0xb0b")], [2_000], 1_000
    )
    rpc.pay.assert_not_awaited()


@pytest.mark.asyncio
async def test_transfer_token_uses_pay(signer, rpc):
    rpc.get_coins.return_value = [coin("0x6", 50_000, USDC)]
    rpc.pay.return_value = TX_B64
    rpc.execute_transaction_block.return_value = effects()

    await signer.transfer_coins("0xb0b", 2_000, USDC)

    rpc.pay.assert_awaited_once()
    rpc.pay_sui.assert_not_awaited()


# ========== Construction ==========

def test_from_keystore(tmp_path, rpc):
    keystore = tmp_path / "sui.keystore"
    keystore.write_text(json.dumps([b64(bytes([0]) + bytes(32)), b64(bytes([0]) + TEST_SEED)]))

    signer = SuiSigner.from_keystore(str(keystore), rpc, index=1)

    assert signer.address == derive_address(bytes(Keypair.from_seed(TEST_SEED).pubkey()))


def test_create_signer_prefers_argument(rpc):
    signer = create_signer(rpc, private_key=TEST_PRIVATE_KEY)
    assert isinstance(signer, SuiSigner)


@patch("sui_dex_adapter.infra.signer.global_config")
def test_create_signer_without_key(mock_config, rpc):
    mock_config.signer.private_key = ""
    mock_config.signer.keystore_path = ""

    with pytest.raises(SignerError) as exc_info:
        create_signer(rpc)
    assert exc_info.value.code == ErrorCode.SIGNER_NOT_CONFIGURED
