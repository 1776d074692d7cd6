# -*- coding: utf-8 -*-
"""
IndicatorEngine Test
====================

증분 RSI / RSI MA·BB / 가격 BB 단위 테스트.
"""
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest
import numpy as np
import pandas as pd

from sniper.anchor.rsi import (
    IndicatorEngine,
    IndicatorSnapshot,
    MAType,
    RSIState,
    NEUTRAL_RSI,
)
from sniper.errors import InvalidConfiguration

from mock_data import make_bars, random_walk


class TestRSIState:
    """RSIState 누적 규칙"""

    def test_first_bar_is_neutral(self):
        state = RSIState(period=14)
        assert state.update(100.0) == NEUTRAL_RSI
        assert state.smoothed_gain == 0.0
        assert state.smoothed_loss == 0.0
        assert state.bars_seen == 1

    def test_second_bar_raw_seed(self):
        """두 번째 봉은 블렌딩 없이 raw gain/loss 시드"""
        state = RSIState(period=14)
        state.update(100.0)
        state.update(103.0)
        assert state.smoothed_gain == pytest.approx(3.0)
        assert state.smoothed_loss == 0.0

    def test_wilder_rma_after_seed(self):
        state = RSIState(period=14)
        for c in (100.0, 103.0, 101.0):
            state.update(c)

        alpha = 1 / 14
        assert state.smoothed_gain == pytest.approx((1 - alpha) * 3.0)
        assert state.smoothed_loss == pytest.approx(alpha * 2.0)

        g, l = state.smoothed_gain, state.smoothed_loss
        assert state.value() == pytest.approx(100 - 100 / (1 + g / l))

    def test_no_loss_is_100(self):
        state = RSIState(period=14)
        for c in (100, 101, 102, 103):
            rsi = state.update(c)
        assert rsi == 100.0

    def test_no_gain_is_0(self):
        state = RSIState(period=14)
        for c in (100, 99, 98, 97):
            rsi = state.update(c)
        assert rsi == 0.0

    def test_flat_prices_are_100(self):
        """손실 0 → 100 (gain도 0이지만 loss 체크가 먼저)"""
        state = RSIState(period=14)
        for c in (100, 100, 100):
            rsi = state.update(c)
        assert rsi == 100.0


class TestEngineConstruction:
    """생성 시점 검증"""

    @pytest.mark.parametrize("kwargs", [
        {"period": 0},
        {"period": -3},
        {"ma_length": 0},
        {"bb_multiplier": 0.0},
        {"price_band_length": 1},
    ])
    def test_invalid_configuration(self, kwargs):
        period = kwargs.pop("period", 14)
        with pytest.raises(InvalidConfiguration):
            IndicatorEngine(period, **kwargs)

    def test_invalid_configuration_is_value_error(self):
        with pytest.raises(ValueError):
            IndicatorEngine(0)

    def test_ma_type_parse(self):
        assert MAType.parse("SMA+Bands") is MAType.SMA_BB
        assert MAType.parse("ema") is MAType.EMA
        assert MAType.parse(MAType.WMA) is MAType.WMA
        with pytest.raises(InvalidConfiguration):
            MAType.parse("hull")


class TestUpdate:
    """update() 동작"""

    def test_first_snapshot(self):
        engine = IndicatorEngine(14, ma_type=MAType.SMA_BB)
        snap = engine.update(make_bars([100.0])[0])
        assert isinstance(snap, IndicatorSnapshot)
        assert snap.bar_index == 0
        assert snap.rsi == NEUTRAL_RSI
        assert snap.ma_value is None
        assert snap.upper_band is None
        assert snap.lower_band is None

    def test_rsi_always_in_range(self):
        """랜덤워크 + 급등락에서도 0 <= rsi <= 100"""
        closes = np.concatenate([
            random_walk(400, seed=1),
            np.linspace(100, 300, 50),
            np.linspace(300, 1, 50),
        ])
        engine = IndicatorEngine(14)
        for bar in make_bars(closes):
            snap = engine.update(bar)
            assert 0.0 <= snap.rsi <= 100.0
            assert engine.state.smoothed_gain >= 0.0
            assert engine.state.smoothed_loss >= 0.0

    def test_monotonic_rise_converges_to_100(self):
        engine = IndicatorEngine(14)
        closes = [100.0, 99.0] + [99.0 + i for i in range(1, 300)]
        for bar in make_bars(closes):
            snap = engine.update(bar)
        assert engine.state.smoothed_loss < 1e-6
        assert snap.rsi > 99.99

    def test_ma_unavailable_until_window_full(self):
        """첫 봉(50)은 윈도우 제외 → bar_index == ma_length에서 처음 사용 가능"""
        engine = IndicatorEngine(14, ma_type=MAType.SMA, ma_length=14)
        snaps = [engine.update(b) for b in make_bars(random_walk(40, seed=3))]

        assert all(s.ma_value is None for s in snaps[:14])
        assert snaps[14].ma_value is not None

        expected = np.mean([s.rsi for s in snaps[1:15]])
        assert snaps[14].ma_value == pytest.approx(expected)

        # SMA는 밴드 없음
        assert snaps[20].upper_band is None
        assert snaps[20].lower_band is None

    def test_bollinger_bands_population_std(self):
        engine = IndicatorEngine(14, ma_type=MAType.SMA_BB, ma_length=10, bb_multiplier=2.0)
        snaps = [engine.update(b) for b in make_bars(random_walk(60, seed=5))]

        window = np.array([s.rsi for s in snaps[-10:]])
        last = snaps[-1]
        assert last.ma_value == pytest.approx(window.mean())
        assert last.upper_band == pytest.approx(window.mean() + 2.0 * window.std(ddof=0))
        assert last.lower_band == pytest.approx(window.mean() - 2.0 * window.std(ddof=0))

    def test_bands_ordered(self):
        engine = IndicatorEngine(14, ma_type=MAType.SMA_BB, ma_length=14)
        for bar in make_bars(random_walk(500, seed=11)):
            snap = engine.update(bar)
            if snap.has_bands:
                assert snap.upper_band >= snap.ma_value >= snap.lower_band

    def test_other_ma_types_use_arithmetic_mean(self):
        closes = random_walk(50, seed=8)
        values = []
        for ma_type in (MAType.SMA, MAType.EMA, MAType.SMMA, MAType.WMA):
            engine = IndicatorEngine(14, ma_type=ma_type, ma_length=14)
            snaps = [engine.update(b) for b in make_bars(closes)]
            values.append(snaps[-1].ma_value)
            assert snaps[-1].upper_band is None
        assert values == pytest.approx([values[0]] * 4)

    def test_ma_none(self):
        engine = IndicatorEngine(14, ma_type=MAType.NONE)
        for bar in make_bars(random_walk(40)):
            snap = engine.update(bar)
        assert snap.ma_value is None
        assert snap.upper_band is None

    def test_unavailable_distinct_from_zero(self):
        """하락만 있는 구간: rsi 0은 유효값, MA는 None"""
        engine = IndicatorEngine(14, ma_type=MAType.SMA, ma_length=14)
        snaps = [engine.update(b) for b in make_bars([100, 99, 98, 97])]
        assert snaps[-1].rsi == 0.0
        assert snaps[-1].ma_value is None

    def test_price_bands(self):
        closes = random_walk(30, seed=21)
        engine = IndicatorEngine(14, price_band_length=20, price_band_multiplier=2.0)
        snaps = [engine.update(b) for b in make_bars(closes)]

        assert not snaps[18].has_price_bands
        assert snaps[19].has_price_bands

        window = closes[-20:]
        last = snaps[-1]
        assert last.price_middle == pytest.approx(window.mean())
        assert last.price_upper == pytest.approx(window.mean() + 2.0 * window.std(ddof=0), rel=1e-6)
        assert last.price_lower == pytest.approx(window.mean() - 2.0 * window.std(ddof=0), rel=1e-6)

    def test_histories_absolute_index(self):
        engine = IndicatorEngine(14, history_size=32)
        bars = make_bars(random_walk(100, seed=2))
        for bar in bars:
            engine.update(bar)

        assert engine.lows[99] == pytest.approx(bars[99].low)
        assert engine.highs[80] == pytest.approx(bars[80].high)
        with pytest.raises(IndexError):
            engine.rsi_values[10]


class TestWarmUp:
    """warm_up() 재생"""

    def test_idempotent(self):
        bars = make_bars(random_walk(200, seed=9))
        engine = IndicatorEngine(14, ma_type=MAType.SMA_BB)

        engine.warm_up(bars)
        first = (engine.state.smoothed_gain, engine.state.smoothed_loss, engine.state.bars_seen)
        engine.warm_up(bars)
        second = (engine.state.smoothed_gain, engine.state.smoothed_loss, engine.state.bars_seen)

        assert first == second

    def test_deterministic_replay(self):
        """warm_up + update 두 번 → 동일한 스냅샷 시퀀스"""
        bars = make_bars(random_walk(300, seed=13))
        history, live = bars[:100], bars[100:]

        def run():
            engine = IndicatorEngine(14, ma_type=MAType.SMA_BB, ma_length=14)
            engine.warm_up(history)
            return [engine.update(b) for b in live]

        assert run() == run()

    def test_warm_up_matches_streaming(self):
        bars = make_bars(random_walk(120, seed=4))
        a = IndicatorEngine(14, ma_type=MAType.SMA_BB)
        b = IndicatorEngine(14, ma_type=MAType.SMA_BB)

        warm = a.warm_up(bars)
        live = [b.update(bar) for bar in bars]
        assert warm == live

    def test_warm_up_from_dataframe(self):
        closes = random_walk(50, seed=6)
        df = pd.DataFrame({
            'open': closes,
            'high': closes + 1,
            'low': closes - 1,
            'close': closes,
            'volume': 1.0,
        }, index=pd.date_range('2024-01-01', periods=50, freq='15min'))

        engine = IndicatorEngine(14)
        snaps = engine.warm_up(df)
        assert len(snaps) == 50
        assert engine.bars_seen == 50

    def test_independent_instances(self):
        """인스턴스 간 상태 공유 없음"""
        up = IndicatorEngine(14)
        down = IndicatorEngine(14)
        for bar in make_bars([100, 101, 102, 103]):
            up.update(bar)
        for bar in make_bars([100, 99, 98, 97]):
            down.update(bar)
        assert up.last_snapshot.rsi == 100.0
        assert down.last_snapshot.rsi == 0.0
