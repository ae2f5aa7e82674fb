"""
Execution pipeline

Composes adapter-built steps into one TransactionBlock and submits it
through the signer. Composition is all-or-nothing: if any step builder
fails, nothing is submitted.
"""

import inspect
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, Iterable, Optional, Union

from ..config import config as global_config
from ..types import ExecutionResult, TransactionBlock, TransactionStep, WaitMode
from .events import CorrelationContext
from .retry import RetryInvoker, RetryPolicy, submission_policy
from .signer import SuiSigner

logger = logging.getLogger(__name__)

StepBuilder = Callable[[], Union[TransactionStep, Awaitable[TransactionStep]]]


@dataclass
class PipelineConfig:
    """
    Pipeline runtime configuration

    Pulls defaults from the global config (sui_dex_adapter.config.TxConfig).

    Usage:
        pipeline = ExecutionPipeline(signer, invoker)
        pipeline = ExecutionPipeline(signer, invoker, config=PipelineConfig(gas_budget=100_000_000))
    """
    gas_budget: int = None
    wait_mode: WaitMode = None
    submission_policy: RetryPolicy = None

    def __post_init__(self):
        """Apply defaults from global config for any unset values"""
        if self.gas_budget is None:
            self.gas_budget = global_config.tx.gas_budget
        if self.wait_mode is None:
            self.wait_mode = WaitMode.from_name(global_config.tx.wait_mode)
        if self.submission_policy is None:
            self.submission_policy = submission_policy()


class ExecutionPipeline:
    """
    Compose and submit multi-step transactions

    Usage:
        result = await pipeline.execute([
            lambda: cetus.swap(SwapRequest(SUI, USDC, 1_000_000_000)),
            lambda: turbos.swap(SwapRequest(USDC, SUI, 500_000)),
        ])
    """

    def __init__(
        self,
        signer: SuiSigner,
        invoker: Optional[RetryInvoker] = None,
        config: Optional[PipelineConfig] = None,
    ):
        self._signer = signer
        self._invoker = invoker or RetryInvoker()
        self._config = config or PipelineConfig()

    @property
    def signer(self) -> SuiSigner:
        return self._signer

    async def compose(
        self,
        builders: Iterable[StepBuilder],
        gas_budget: Optional[int] = None,
    ) -> TransactionBlock:
        """
        Run step builders in order into a fresh TransactionBlock

        Builders run sequentially; the first failure propagates and the
        partial block is discarded.
        """
        tx = TransactionBlock(gas_budget=gas_budget or self._config.gas_budget)
        for index, builder in enumerate(builders):
            step = builder()
            if inspect.isawaitable(step):
                step = await step
            if not isinstance(step, TransactionStep):
                raise TypeError(f"Step builder {index} returned {type(step).__name__}, expected TransactionStep")
            tx.add(step)
            logger.debug(f"Composed step {index}: {step.target}")
        return tx

    async def submit(
        self,
        tx: TransactionBlock,
        options: Optional[Dict[str, bool]] = None,
        wait_mode: Optional[WaitMode] = None,
    ) -> ExecutionResult:
        """Finalize, sign and execute under the submission retry preset"""
        mode = wait_mode or self._config.wait_mode
        return await self._invoker.invoke(
            lambda: self._signer.finalize_and_submit(tx, options, mode),
            self._config.submission_policy,
            "submit_transaction",
        )

    async def execute(
        self,
        builders: Iterable[StepBuilder],
        gas_budget: Optional[int] = None,
        options: Optional[Dict[str, bool]] = None,
        wait_mode: Optional[WaitMode] = None,
    ) -> ExecutionResult:
        """compose() then submit(), under one correlation id"""
        with CorrelationContext("tx") as cid:
            tx = await self.compose(builders, gas_budget)
            logger.info(f"[{cid}] Executing transaction with {len(tx)} step(s)")
            return await self.submit(tx, options, wait_mode)

    async def estimate(self, tx: TransactionBlock) -> int:
        return await self._signer.estimate_gas(tx)
