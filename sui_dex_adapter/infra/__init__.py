"""
Infrastructure: RPC, retry, cache, events, signing and execution
"""

from .events import EventSink, RecordingEventSink, CorrelationContext, get_correlation_id
from .rpc import SuiRpcClient, RpcClientConfig, classify_rpc_error
from .retry import (
    RetryPolicy,
    RetryInvoker,
    compute_delay,
    classify_error,
    rpc_policy,
    submission_policy,
)
from .cache import ResultCache, CacheNamespace, CacheMetrics
from .signer import SuiSigner, CoinObject, create_signer, derive_address, parse_private_key, transaction_digest
from .pipeline import ExecutionPipeline, PipelineConfig

__all__ = [
    "EventSink",
    "RecordingEventSink",
    "CorrelationContext",
    "get_correlation_id",
    "SuiRpcClient",
    "RpcClientConfig",
    "classify_rpc_error",
    "RetryPolicy",
    "RetryInvoker",
    "compute_delay",
    "classify_error",
    "rpc_policy",
    "submission_policy",
    "ResultCache",
    "CacheNamespace",
    "CacheMetrics",
    "SuiSigner",
    "CoinObject",
    "create_signer",
    "derive_address",
    "parse_private_key",
    "transaction_digest",
    "ExecutionPipeline",
    "PipelineConfig",
]
