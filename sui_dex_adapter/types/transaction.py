"""
Transaction step and block types
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from ..errors import TransactionError, ErrorCode
from .address import Address, CoinType


class TransactionAction(Enum):
    SWAP = "swap"
    ADD_LIQUIDITY = "add_liquidity"
    REMOVE_LIQUIDITY = "remove_liquidity"


@dataclass(frozen=True)
class TransactionStep:
    """
    One Move call contributed by an adapter

    Immutable once built. Adapters never submit steps themselves; the
    pipeline composes them into a TransactionBlock.

    Attributes:
        action: What the step does
        dex: Adapter name that built the step
        package_id: Move package of the call target
        module: Move module name
        function: Move function name
        type_arguments: Generic type arguments (coin types)
        arguments: Call arguments as JSON-RPC values
        pool_id: Pool the step acts on
        coins: Coin types involved
        amounts: Amounts involved, in base units
        expected_output: Quoted output if known
        slippage_bps: Slippage bound in basis points
    """
    action: TransactionAction
    dex: str
    package_id: Address
    module: str
    function: str
    type_arguments: Tuple[str, ...] = ()
    arguments: Tuple[Any, ...] = ()
    pool_id: Optional[Address] = None
    coins: Tuple[CoinType, ...] = ()
    amounts: Tuple[int, ...] = ()
    expected_output: Optional[int] = None
    slippage_bps: int = 0

    @property
    def target(self) -> str:
        """Fully-qualified call target <package>::<module>::<function>"""
        return f"{self.package_id}::{self.module}::{self.function}"

    def to_rpc_params(self) -> Dict[str, Any]:
        """moveCallRequestParams entry for unsafe_batchTransaction"""
        return {
            "moveCallRequestParams": {
                "packageObjectId": str(self.package_id),
                "module": self.module,
                "function": self.function,
                "typeArguments": [str(t) for t in self.type_arguments],
                "arguments": [a if isinstance(a, (list, dict)) else str(a) for a in self.arguments],
            }
        }


@dataclass
class TransactionBlock:
    """
    Ordered steps plus gas parameters

    Mutable while being composed; sealed when the signer finalizes it.
    After sealing, no steps can be added and the sender cannot change.
    """
    gas_budget: int
    steps: List[TransactionStep] = field(default_factory=list)
    sender: Optional[Address] = None
    gas_payment: Optional[Address] = None
    _sealed: bool = field(default=False, repr=False)

    @property
    def sealed(self) -> bool:
        return self._sealed

    def add(self, step: TransactionStep) -> "TransactionBlock":
        if self._sealed:
            raise TransactionError(
                "Cannot add steps to a sealed transaction",
                ErrorCode.TX_VALIDATION_FAILED,
            )
        self.steps.append(step)
        return self

    def set_sender(self, sender: Address):
        if self._sealed and sender != self.sender:
            raise TransactionError(
                "Cannot change sender of a sealed transaction",
                ErrorCode.TX_VALIDATION_FAILED,
            )
        self.sender = Address(sender)

    def seal(self):
        """Freeze the block; idempotent"""
        if not self.steps:
            raise TransactionError("Transaction has no steps", ErrorCode.TX_VALIDATION_FAILED)
        if self.sender is None:
            raise TransactionError("Transaction has no sender", ErrorCode.TX_VALIDATION_FAILED)
        self._sealed = True

    def to_rpc_params(self) -> List[Dict[str, Any]]:
        return [step.to_rpc_params() for step in self.steps]

    def __len__(self) -> int:
        return len(self.steps)
