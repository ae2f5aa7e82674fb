"""
RPC Client for Sui

Provides an async JSON-RPC interface with:
- Multiple endpoint fallback
- Error classification at the boundary (HTTP status, JSON-RPC code, chain error identifiers)
- Request timeout management

Retries with backoff are not done here: callers wrap calls in a
RetryInvoker policy. A call makes at most one attempt per endpoint.
"""

import asyncio
import itertools
import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union

import httpx

from ..errors import RpcError, ConfigurationError, ErrorCode
from ..config import config as global_config

logger = logging.getLogger(__name__)


# JSON-RPC error codes returned by Sui fullnodes
JSONRPC_INVALID_PARAMS = -32602
JSONRPC_INTERNAL_ERROR = -32603
SUI_CLIENT_ERROR = -32002
SUI_TRANSIENT_ERROR = -32050

# Chain error identifiers that map to dedicated codes. Checked in order.
_CHAIN_ERROR_CODES = (
    (("InsufficientGas", "GasBudgetTooLow", "GasBalanceTooLow", "gas budget"), ErrorCode.TX_GAS_ESTIMATION_FAILED, True),
    (("ObjectLockConflict", "already locked", "equivocat", "ObjectVersionUnavailableForConsumption"), ErrorCode.TX_OBJECT_LOCKED, True),
    (("InsufficientCoinBalance", "InsufficientBalance", "insufficient balance"), ErrorCode.TX_INSUFFICIENT_FUNDS, False),
)


def classify_rpc_error(error: Dict[str, Any]) -> tuple:
    """
    Map a JSON-RPC error object to (ErrorCode, recoverable)

    Args:
        error: The "error" member of a JSON-RPC response

    Returns:
        Tuple of (error_code, recoverable)
    """
    rpc_code = error.get("code")
    text = f"{error.get('message', '')} {error.get('data', '')}"

    for identifiers, code, recoverable in _CHAIN_ERROR_CODES:
        if any(ident.lower() in text.lower() for ident in identifiers):
            return code, recoverable

    if rpc_code == SUI_TRANSIENT_ERROR:
        return ErrorCode.TX_NETWORK_CONGESTED, True
    if rpc_code == SUI_CLIENT_ERROR:
        return ErrorCode.TX_VALIDATION_FAILED, False
    if rpc_code == JSONRPC_INTERNAL_ERROR:
        return ErrorCode.RPC_INVALID_RESPONSE, True
    return ErrorCode.RPC_REQUEST_REJECTED, False


@dataclass
class RpcClientConfig:
    """
    RPC client runtime configuration

    Allows per-client overrides while pulling defaults from the global
    config (sui_dex_adapter.config.RpcConfig).

    Usage:
        # Use all defaults from environment
        client = SuiRpcClient(endpoint)

        # Override specific settings
        config = RpcClientConfig(timeout_seconds=60)
        client = SuiRpcClient(endpoint, config=config)
    """
    timeout_seconds: float = None

    def __post_init__(self):
        """Apply defaults from global config for any unset values"""
        if self.timeout_seconds is None:
            self.timeout_seconds = global_config.rpc.timeout_seconds


class SuiRpcClient:
    """
    Async Sui JSON-RPC client

    Supports:
    - Multiple RPC endpoints with automatic fallback
    - Typed errors carrying an ErrorCode assigned from the response
    - Configurable timeouts

    Usage:
        async with SuiRpcClient("https://fullnode.mainnet.sui.io:443") as rpc:
            obj = await rpc.get_object("0x...")
            result = await rpc.call("sui_getLatestCheckpointSequenceNumber", [])
    """

    def __init__(
        self,
        endpoint: Union[str, List[str]],
        config: Optional[RpcClientConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize RPC client

        Args:
            endpoint: RPC endpoint URL or list of URLs (for fallback)
            config: RPC configuration options
            transport: Optional httpx transport (e.g. httpx.MockTransport)
        """
        self._endpoints = [endpoint] if isinstance(endpoint, str) else list(endpoint)
        if not self._endpoints or not all(self._endpoints):
            raise ConfigurationError.missing("RPC endpoint")

        self._config = config or RpcClientConfig()
        self._transport = transport
        self._current_endpoint_idx = 0
        self._client: Optional[httpx.AsyncClient] = None
        self._request_ids = itertools.count(1)

    @property
    def endpoint(self) -> str:
        """Current active endpoint"""
        return self._endpoints[self._current_endpoint_idx]

    @property
    def endpoints(self) -> List[str]:
        return list(self._endpoints)

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client"""
        # No await between check and assignment, so no lock is needed
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self._config.timeout_seconds,
                headers={"Content-Type": "application/json"},
                transport=self._transport,
            )
        return self._client

    def _rotate_endpoint(self):
        """Rotate to next endpoint on failure"""
        if len(self._endpoints) > 1:
            self._current_endpoint_idx = (self._current_endpoint_idx + 1) % len(self._endpoints)
            logger.info(f"Rotating to RPC endpoint: {self.endpoint}")

    async def call(
        self,
        method: str,
        params: List[Any],
        timeout: Optional[float] = None,
    ) -> Any:
        """
        Make JSON-RPC call

        Transport-level failures move on to the next endpoint. An error
        object returned by a node is raised immediately.

        Args:
            method: RPC method name
            params: RPC parameters
            timeout: Optional timeout override

        Returns:
            RPC result

        Raises:
            RpcError: On RPC failure, with a classified ErrorCode
        """
        client = self._get_client()
        body = {
            "jsonrpc": "2.0",
            "id": next(self._request_ids),
            "method": method,
            "params": params,
        }
        timeout_val = timeout or self._config.timeout_seconds

        last_error: Optional[RpcError] = None

        for _ in range(len(self._endpoints)):
            endpoint = self.endpoint
            try:
                response = await client.post(endpoint, json=body, timeout=timeout_val)
            except (httpx.TimeoutException, asyncio.TimeoutError):
                last_error = RpcError.timeout(endpoint, timeout_val)
                logger.warning(f"RPC timeout calling {method} on {endpoint}")
                self._rotate_endpoint()
                continue
            except httpx.TransportError as e:
                last_error = RpcError.connection_failed(endpoint, e)
                logger.warning(f"RPC connection error calling {method} on {endpoint}: {e}")
                self._rotate_endpoint()
                continue

            if response.status_code == 429:
                last_error = RpcError.rate_limited(endpoint)
                logger.warning(f"Rate limited by {endpoint}")
                self._rotate_endpoint()
                continue

            if response.status_code >= 500:
                last_error = RpcError(
                    f"HTTP error {response.status_code}",
                    ErrorCode.RPC_CONNECTION_FAILED,
                    endpoint=endpoint,
                )
                logger.warning(f"RPC HTTP {response.status_code} calling {method} on {endpoint}")
                self._rotate_endpoint()
                continue

            if response.status_code >= 400:
                raise RpcError(
                    f"HTTP error {response.status_code}: {response.text[:200]}",
                    ErrorCode.RPC_REQUEST_REJECTED,
                    endpoint=endpoint,
                    recoverable=False,
                )

            try:
                payload = response.json()
            except (json.JSONDecodeError, ValueError) as e:
                last_error = RpcError(
                    f"Invalid JSON from {method}: {e}",
                    ErrorCode.RPC_INVALID_RESPONSE,
                    original_error=e,
                    endpoint=endpoint,
                )
                logger.warning(f"Invalid JSON calling {method} on {endpoint}")
                self._rotate_endpoint()
                continue

            if not isinstance(payload, dict):
                raise RpcError(
                    f"Unexpected response shape from {method}",
                    ErrorCode.RPC_INVALID_RESPONSE,
                    endpoint=endpoint,
                )

            if "error" in payload and payload["error"] is not None:
                error = payload["error"]
                code, recoverable = classify_rpc_error(error)
                error_msg = error.get("message", str(error))
                rpc_error = RpcError(
                    f"RPC error calling {method}: {error_msg}",
                    code,
                    endpoint=endpoint,
                    rpc_code=error.get("code"),
                    recoverable=recoverable,
                )
                rpc_error.details["rpc_error_data"] = error.get("data")
                raise rpc_error

            return payload.get("result")

        # All endpoints failed
        raise last_error or RpcError("All RPC endpoints failed")

    async def close(self):
        """Close HTTP client"""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "SuiRpcClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    # ========== Objects & Packages ==========

    async def get_object(
        self,
        object_id: str,
        show_content: bool = True,
        show_type: bool = True,
    ) -> Dict[str, Any]:
        """
        Get object data

        Returns:
            The "data" member, or {} when the object does not exist
        """
        options = {"showContent": show_content, "showType": show_type}
        result = await self.call("sui_getObject", [str(object_id), options])
        if not result or "data" not in result:
            return {}
        return result["data"] or {}

    async def get_normalized_modules(self, package_id: str) -> Dict[str, Any]:
        """Get normalized Move modules of a package (used as an existence check)"""
        return await self.call("sui_getNormalizedMoveModulesByPackage", [str(package_id)])

    async def query_events(
        self,
        event_type: str,
        cursor: Optional[Dict[str, Any]] = None,
        limit: int = 50,
        descending: bool = True,
    ) -> Dict[str, Any]:
        """
        Query Move events by type

        Returns:
            Page dict with "data", "nextCursor", "hasNextPage"
        """
        query = {"MoveEventType": event_type}
        result = await self.call("suix_queryEvents", [query, cursor, limit, descending])
        return result or {"data": [], "nextCursor": None, "hasNextPage": False}

    # ========== Coins & Balances ==========

    async def get_coins(
        self,
        owner: str,
        coin_type: Optional[str] = None,
        page_limit: int = 50,
    ) -> List[Dict[str, Any]]:
        """
        Get all coin objects of a type owned by an address

        Follows pagination until hasNextPage is false.
        """
        coins: List[Dict[str, Any]] = []
        cursor = None
        while True:
            params = [str(owner), str(coin_type) if coin_type else None, cursor, page_limit]
            page = await self.call("suix_getCoins", params) or {}
            coins.extend(page.get("data", []))
            if not page.get("hasNextPage") or not page.get("nextCursor"):
                break
            cursor = page["nextCursor"]
        return coins

    async def get_balance(self, owner: str, coin_type: Optional[str] = None) -> int:
        """Total balance of one coin type in base units"""
        params = [str(owner)]
        if coin_type:
            params.append(str(coin_type))
        result = await self.call("suix_getBalance", params) or {}
        return int(result.get("totalBalance", 0))

    async def get_all_balances(self, owner: str) -> List[Dict[str, Any]]:
        return await self.call("suix_getAllBalances", [str(owner)]) or []

    # ========== Transaction Building ==========
    # The node assembles transaction bytes; the client only signs them.

    async def batch_transaction(
        self,
        signer: str,
        calls: List[Dict[str, Any]],
        gas_budget: int,
        gas: Optional[str] = None,
    ) -> str:
        """
        Build a transaction of several Move calls

        Returns:
            Unsigned transaction bytes (base64)
        """
        params = [str(signer), calls, str(gas) if gas else None, str(gas_budget), "Commit"]
        result = await self.call("unsafe_batchTransaction", params) or {}
        return _tx_bytes(result, "unsafe_batchTransaction")

    async def split_coin(
        self,
        signer: str,
        coin_object_id: str,
        split_amounts: List[int],
        gas_budget: int,
        gas: Optional[str] = None,
    ) -> str:
        params = [
            str(signer),
            str(coin_object_id),
            [str(a) for a in split_amounts],
            str(gas) if gas else None,
            str(gas_budget),
        ]
        result = await self.call("unsafe_splitCoin", params) or {}
        return _tx_bytes(result, "unsafe_splitCoin")

    async def pay(
        self,
        signer: str,
        input_coins: List[str],
        recipients: List[str],
        amounts: List[int],
        gas_budget: int,
        gas: Optional[str] = None,
    ) -> str:
        params = [
            str(signer),
            [str(c) for c in input_coins],
            [str(r) for r in recipients],
            [str(a) for a in amounts],
            str(gas) if gas else None,
            str(gas_budget),
        ]
        result = await self.call("unsafe_pay", params) or {}
        return _tx_bytes(result, "unsafe_pay")

    async def pay_sui(
        self,
        signer: str,
        input_coins: List[str],
        recipients: List[str],
        amounts: List[int],
        gas_budget: int,
    ) -> str:
        """Pay in SUI; the first input coin also pays gas"""
        params = [
            str(signer),
            [str(c) for c in input_coins],
            [str(r) for r in recipients],
            [str(a) for a in amounts],
            str(gas_budget),
        ]
        result = await self.call("unsafe_paySui", params) or {}
        return _tx_bytes(result, "unsafe_paySui")

    # ========== Execution ==========

    async def execute_transaction_block(
        self,
        tx_bytes: str,
        signatures: List[str],
        options: Optional[Dict[str, bool]] = None,
        request_type: str = "WaitForLocalExecution",
    ) -> Dict[str, Any]:
        """
        Submit a signed transaction

        Args:
            tx_bytes: Transaction bytes (base64)
            signatures: Serialized signatures (base64)
            options: Response options (showEffects, showEvents, ...)
            request_type: WaitForLocalExecution | WaitForEffectsCert | WaitForTransactionBlock
        """
        if options is None:
            options = {
                "showEffects": True,
                "showEvents": True,
                "showObjectChanges": True,
                "showBalanceChanges": True,
            }
        params = [tx_bytes, signatures, options, request_type]
        return await self.call("sui_executeTransactionBlock", params) or {}

    async def dry_run_transaction_block(self, tx_bytes: str) -> Dict[str, Any]:
        return await self.call("sui_dryRunTransactionBlock", [tx_bytes]) or {}


def _tx_bytes(result: Dict[str, Any], method: str) -> str:
    tx_bytes = result.get("txBytes")
    if not tx_bytes:
        raise RpcError(
            f"{method} returned no txBytes",
            ErrorCode.RPC_INVALID_RESPONSE,
        )
    return tx_bytes
