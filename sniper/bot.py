# -*- coding: utf-8 -*-
"""
Sniper Bot - 봉/타이머 이벤트 오케스트레이션
=============================================

봉 이벤트:  PriceFeed → IndicatorEngine → DivergenceDetector → TradingStateMachine
            → {ExecutionGateway, Notifier}, IndicatorSeries (차트 출력)
타이머:     clock → HeartbeatScheduler → Notifier

두 이벤트는 호스트가 직렬로 전달 (동시 호출 없음, 락 없음).
재시작 복구 = warm_up() 재생 + start()의 게이트웨이 동기화.

사용법:
```python
from sniper.bot import SniperBot
from sniper.config import load_symbol_config
from sniper.execution import PaperGateway, LoggingNotifier

bot = SniperBot(load_symbol_config("EURUSD"), PaperGateway(), LoggingNotifier())
bot.warm_up(history_df)
bot.start(now=time.time())

for bar in feed:
    result = bot.on_bar(bar)
```
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Iterable, List, Optional, Union

import pandas as pd

from .anchor.divergence import DivergenceDetector, DivergenceEvent, DivergenceKind
from .anchor.rsi import DEFAULT_HISTORY_SIZE, IndicatorEngine, IndicatorSnapshot
from .config.loader import StrategyConfig
from .data.bars import PriceBar, bars_from_frame, iter_bars
from .execution.gateway import ClosedTrade, ExecutionGateway, Notifier, PaperGateway, safe_send
from .execution.state_machine import (
    BandConfirmationPolicy,
    Decision,
    OscillatorThresholdPolicy,
    PolicyKind,
    TradingStateMachine,
)
from .features.plot_series import IndicatorSeries
from .utils.heartbeat import HeartbeatScheduler

logger = logging.getLogger(__name__)


def build_policy(config: StrategyConfig):
    """config.policy → 정책 인스턴스"""
    if config.policy is PolicyKind.BAND:
        return BandConfirmationPolicy(
            oversold_gate=config.band.oversold_gate,
            overbought_gate=config.band.overbought_gate,
        )
    return OscillatorThresholdPolicy(
        buy_threshold=config.oscillator.buy_threshold,
        sell_threshold=config.oscillator.sell_threshold,
        exit_level=config.oscillator.exit_level,
    )


@dataclass(frozen=True)
class BarResult:
    """봉 1개 처리 결과"""
    bar: PriceBar
    snapshot: IndicatorSnapshot
    divergence: Optional[DivergenceEvent]
    decision: Decision


class SniperBot:
    """전략 인스턴스 1개 (instrument, timeframe, strategy_id)"""

    def __init__(
        self,
        config: StrategyConfig,
        gateway: ExecutionGateway,
        notifier: Optional[Notifier] = None,
        clock: Optional[Callable[[], float]] = None,
    ):
        self.config = config
        self.gateway = gateway
        self.notifier = notifier
        self.clock = clock or time.time

        div = config.divergence
        self.engine = IndicatorEngine(
            config.rsi.period,
            ma_type=config.smoothing.ma_type,
            ma_length=config.smoothing.ma_length,
            bb_multiplier=config.smoothing.bb_multiplier,
            price_band_length=config.band.length,
            price_band_multiplier=config.band.multiplier,
            history_size=max(DEFAULT_HISTORY_SIZE, div.lookback + div.comparison_offset + 1),
        )
        self.detector: Optional[DivergenceDetector] = None
        if div.enabled:
            self.detector = DivergenceDetector(
                lookback=div.lookback,
                comparison_offset=div.comparison_offset,
                oversold_gate=div.oversold_gate,
                overbought_gate=div.overbought_gate,
            )

        self.policy = build_policy(config)
        self.machine = TradingStateMachine(
            self.policy,
            gateway,
            strategy_id=config.strategy_id,
            instrument=config.symbol,
            lot_size=config.lot_size,
            notifier=notifier if config.notify.trades else None,
        )
        self.heartbeat = HeartbeatScheduler(
            config.heartbeat.interval_seconds,
            send_on_start=config.heartbeat.send_on_start,
        )
        self.series = IndicatorSeries(maxlen=config.plot_history)

    @property
    def state(self):
        return self.machine.state

    @property
    def last_snapshot(self) -> Optional[IndicatorSnapshot]:
        return self.engine.last_snapshot

    # -------------------- lifecycle --------------------

    def warm_up(self, history: Union[pd.DataFrame, Iterable[PriceBar]]) -> int:
        """
        과거 봉으로 지표 상태 재구성

        거래 신호/다이버전스/알림 없음. 차트 출력 시리즈는 재구성됨.

        Returns:
            재생한 봉 수
        """
        bars = list(iter_bars(history))
        snapshots = self.engine.warm_up(bars)
        if self.detector is not None:
            self.detector.reset()

        self.series.clear()
        for bar, snap in zip(bars, snapshots):
            self.series.append(snap, bar.timestamp)

        logger.info(f"{self.config.symbol}: warmed up on {len(bars)} bars")
        return len(bars)

    def start(self, now: Optional[float] = None) -> bool:
        """게이트웨이 동기화 + 시작 알림 (send_on_start)"""
        self.machine.sync_with_gateway()
        if self.heartbeat.start(self.clock() if now is None else now):
            safe_send(self.notifier, self.status_message("System Initialized"))
            return True
        return False

    # -------------------- events --------------------

    def on_bar(self, bar: PriceBar) -> BarResult:
        snapshot = self.engine.update(bar)
        self.series.append(snapshot, bar.timestamp)

        event = None
        if self.detector is not None:
            event = self.detector.on_bar(self.engine, self.engine.rsi_values, snapshot.bar_index)
        if event is not None:
            self.series.mark(event)
            logger.info(
                f"{self.config.symbol}: {event.kind.value} divergence at bar {event.pivot_bar_index} "
                f"(rsi={event.indicator_extreme:.2f}, detected {event.lag} bars later)"
            )
            if self.config.notify.divergence:
                safe_send(self.notifier, self._divergence_message(event))

        decision = self.machine.on_bar(snapshot, bar.close, event)
        logger.debug(
            f"bar {snapshot.bar_index} close={bar.close} rsi={snapshot.rsi:.2f} "
            f"{decision.state_before.value}->{decision.state_after.value}"
        )
        return BarResult(bar=bar, snapshot=snapshot, divergence=event, decision=decision)

    def on_timer(self, now: Optional[float] = None) -> bool:
        """Heartbeat 타이머 (now 생략 시 clock 사용)"""
        if self.heartbeat.tick(self.clock() if now is None else now):
            safe_send(self.notifier, self.status_message("Periodic Heartbeat"))
            return True
        return False

    # -------------------- messages --------------------

    def status_message(self, reason: str) -> str:
        lines = [
            f"{reason}",
            f"Pair: {self.config.symbol} ({self.config.timeframe})",
            f"Policy: {self.config.policy.value} | {self.policy.describe()}",
            f"State: {self.state.value.upper()}",
        ]
        snap = self.last_snapshot
        if snap is not None:
            lines.append(f"RSI: {snap.rsi:.2f}")
        position = self.machine.position
        if position is not None:
            lines.append(
                f"Position: {position.direction.value} {position.size} @ {position.entry_price}"
            )
            if snap is not None:
                lines.append(f"Floating P/L: {position.unrealized_pnl(snap.close):.2f}")
        return "\n".join(lines)

    def _divergence_message(self, event: DivergenceEvent) -> str:
        arrow = "Bullish" if event.kind is DivergenceKind.BULLISH else "Bearish"
        return (
            f"{arrow} Divergence | {self.config.symbol} | "
            f"bar {event.pivot_bar_index} | RSI: {event.indicator_extreme:.2f}"
        )


# =============================================================================
# Replay
# =============================================================================

@dataclass
class ReplayResult:
    trades: List[ClosedTrade]
    decisions: List[Decision] = field(default_factory=list)
    divergences: List[DivergenceEvent] = field(default_factory=list)
    frame: Optional[pd.DataFrame] = None

    @property
    def total_pnl(self) -> float:
        return sum(t.pnl for t in self.trades)

    @property
    def win_rate(self) -> float:
        if not self.trades:
            return 0.0
        return sum(1 for t in self.trades if t.pnl > 0) / len(self.trades) * 100


def replay(
    df: pd.DataFrame,
    config: StrategyConfig,
    *,
    warmup_bars: Optional[int] = None,
    notifier: Optional[Notifier] = None,
    gateway: Optional[PaperGateway] = None,
) -> ReplayResult:
    """
    OHLCV DataFrame을 PaperGateway로 재생

    앞쪽 warmup_bars(기본 config.warmup_bars)는 warm-up, 나머지는 라이브 처리.
    """
    bars = bars_from_frame(df)
    n_warm = config.warmup_bars if warmup_bars is None else warmup_bars
    n_warm = min(n_warm, len(bars))

    gateway = gateway if gateway is not None else PaperGateway()
    bot = SniperBot(config, gateway, notifier)
    bot.warm_up(bars[:n_warm])

    result = ReplayResult(trades=gateway.trades)
    for i, bar in enumerate(bars[n_warm:], start=n_warm):
        gateway.mark(bar.close, i)
        step = bot.on_bar(bar)
        if step.decision.command is not None:
            result.decisions.append(step.decision)
        if step.divergence is not None:
            result.divergences.append(step.divergence)

    result.frame = bot.series.to_frame()
    return result
