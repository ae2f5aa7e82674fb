"""
Transaction execution result types
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class TxStatus(Enum):
    SUCCESS = "success"
    FAILURE = "failure"
    # Response carried no effects status (e.g. showEffects not requested)
    UNKNOWN = "unknown"


class WaitMode(Enum):
    """How long the node waits before answering an execute request"""
    LOCAL_EXECUTION = "WaitForLocalExecution"
    EFFECTS_CERT = "WaitForEffectsCert"
    FULL_BLOCK = "WaitForTransactionBlock"

    @classmethod
    def from_name(cls, name: str) -> "WaitMode":
        """Accepts config spellings: local_execution, effects_cert, full_block"""
        key = name.strip().upper()
        try:
            return cls[key]
        except KeyError:
            for mode in cls:
                if mode.value.lower() == name.strip().lower():
                    return mode
            raise ValueError(f"Unknown wait mode: {name}")


@dataclass
class GasUsed:
    """Gas cost breakdown in MIST"""
    computation_cost: int = 0
    storage_cost: int = 0
    storage_rebate: int = 0
    non_refundable_storage_fee: int = 0

    @property
    def total(self) -> int:
        """Net gas charged: computation + storage - rebate"""
        return self.computation_cost + self.storage_cost - self.storage_rebate

    @classmethod
    def from_rpc(cls, data: Optional[Dict[str, Any]]) -> "GasUsed":
        data = data or {}
        return cls(
            computation_cost=int(data.get("computationCost", 0)),
            storage_cost=int(data.get("storageCost", 0)),
            storage_rebate=int(data.get("storageRebate", 0)),
            non_refundable_storage_fee=int(data.get("nonRefundableStorageFee", 0)),
        )


@dataclass
class ExecutionResult:
    """
    Outcome of an executed transaction

    Attributes:
        digest: Transaction digest (base58)
        status: Effects status
        error: Failure reason reported by the chain
        gas_used: Gas breakdown
        events: Emitted Move events
        object_changes: Created/mutated/deleted objects
        balance_changes: Per-owner coin balance changes
        raw: Full node response
    """
    digest: str
    status: TxStatus
    error: Optional[str] = None
    gas_used: GasUsed = field(default_factory=GasUsed)
    events: List[Dict[str, Any]] = field(default_factory=list)
    object_changes: List[Dict[str, Any]] = field(default_factory=list)
    balance_changes: List[Dict[str, Any]] = field(default_factory=list)
    raw: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_success(self) -> bool:
        return self.status == TxStatus.SUCCESS

    @property
    def is_failure(self) -> bool:
        """Chain reported a failed effects status"""
        return self.status == TxStatus.FAILURE

    @classmethod
    def from_rpc(cls, payload: Dict[str, Any]) -> "ExecutionResult":
        """Build from a sui_executeTransactionBlock response"""
        effects = payload.get("effects") or {}
        status_info = effects.get("status") or {}
        try:
            status = TxStatus(status_info.get("status"))
        except ValueError:
            status = TxStatus.UNKNOWN
        return cls(
            digest=payload.get("digest", ""),
            status=status,
            error=status_info.get("error"),
            gas_used=GasUsed.from_rpc(effects.get("gasUsed")),
            events=payload.get("events") or [],
            object_changes=payload.get("objectChanges") or [],
            balance_changes=payload.get("balanceChanges") or [],
            raw=payload,
        )

    def created_objects(self) -> List[str]:
        return [
            change.get("objectId")
            for change in self.object_changes
            if change.get("type") == "created"
        ]

    def __str__(self) -> str:
        if self.is_success:
            return f"ExecutionResult(success, {self.digest}, gas={self.gas_used.total})"
        if not self.is_failure:
            return f"ExecutionResult(unknown, {self.digest})"
        return f"ExecutionResult(failure, {self.digest}, error={self.error})"
