"""
Config Loader
=============

YAML 기반 전략 파라미터 로더.

사용법:
    from sniper.config import load_symbol_config

    # 심볼별 설정 로드 (default.yaml + symbols/<SYMBOL>.yaml + env)
    config = load_symbol_config("EURUSD")
    print(config.rsi.period)               # 14
    print(config.oscillator.buy_threshold) # 37.0

환경변수 오버라이드:
    SNIPER_LOT_SIZE=0.05        # 주문 수량 강제
    SNIPER_STRATEGY_ID=123456   # magic number 강제
    SNIPER_POLICY=band          # 정책 강제

모든 값은 생성 시점에 검증 (InvalidConfiguration). 런타임 검증 없음.
"""

import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Union

import yaml

from ..anchor.rsi import MAType
from ..errors import InvalidConfiguration
from ..execution.state_machine import PolicyKind
from ..utils.timeframe import TimeframeSpec, duration_to_seconds


CONFIG_DIR = Path(__file__).parent.parent.parent / "config"
SYMBOLS_DIR = CONFIG_DIR / "symbols"


def _positive_int(name: str, value) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise InvalidConfiguration(f"{name} must be a positive integer, got {value!r}")
    return value


def _positive(name: str, value) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
        raise InvalidConfiguration(f"{name} must be > 0, got {value!r}")
    return float(value)


def _percent(name: str, value) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or not 0 <= value <= 100:
        raise InvalidConfiguration(f"{name} must be in [0, 100], got {value!r}")
    return float(value)


def _set(obj, name: str, value):
    object.__setattr__(obj, name, value)


@dataclass(frozen=True)
class RSIParams:
    """RSI 파라미터"""
    period: int = 14

    def __post_init__(self):
        _positive_int("rsi.period", self.period)


@dataclass(frozen=True)
class SmoothingParams:
    """RSI 이동평균 / 볼린저 파라미터"""
    ma_type: MAType = MAType.SMA
    ma_length: int = 14
    bb_multiplier: float = 2.0

    def __post_init__(self):
        _set(self, 'ma_type', MAType.parse(self.ma_type))
        _positive_int("smoothing.ma_length", self.ma_length)
        _set(self, 'bb_multiplier', _positive("smoothing.bb_multiplier", self.bb_multiplier))


@dataclass(frozen=True)
class DivergenceParams:
    """다이버전스 파라미터"""
    enabled: bool = True
    lookback: int = 5
    comparison_offset: int = 10
    oversold_gate: float = 35.0
    overbought_gate: float = 65.0

    def __post_init__(self):
        _positive_int("divergence.lookback", self.lookback)
        _positive_int("divergence.comparison_offset", self.comparison_offset)
        _set(self, 'oversold_gate', _percent("divergence.oversold_gate", self.oversold_gate))
        _set(self, 'overbought_gate', _percent("divergence.overbought_gate", self.overbought_gate))


@dataclass(frozen=True)
class OscillatorParams:
    """RSI 임계값 정책"""
    buy_threshold: float = 37.0
    sell_threshold: float = 67.0
    exit_level: float = 50.0

    def __post_init__(self):
        _set(self, 'buy_threshold', _percent("oscillator.buy_threshold", self.buy_threshold))
        _set(self, 'sell_threshold', _percent("oscillator.sell_threshold", self.sell_threshold))
        _set(self, 'exit_level', _percent("oscillator.exit_level", self.exit_level))


@dataclass(frozen=True)
class BandParams:
    """가격 볼린저 밴드 정책"""
    length: int = 20
    multiplier: float = 2.0
    oversold_gate: float = 30.0
    overbought_gate: float = 70.0

    def __post_init__(self):
        _positive_int("band.length", self.length)
        if self.length < 2:
            raise InvalidConfiguration(f"band.length must be >= 2, got {self.length}")
        _set(self, 'multiplier', _positive("band.multiplier", self.multiplier))
        _set(self, 'oversold_gate', _percent("band.oversold_gate", self.oversold_gate))
        _set(self, 'overbought_gate', _percent("band.overbought_gate", self.overbought_gate))


@dataclass(frozen=True)
class HeartbeatParams:
    """Heartbeat 알림 (interval: 초 또는 '4h' 형식)"""
    interval_seconds: int = 4 * 3600
    send_on_start: bool = True

    def __post_init__(self):
        _set(self, 'interval_seconds', duration_to_seconds(self.interval_seconds))
        _positive_int("heartbeat.interval_seconds", self.interval_seconds)


@dataclass(frozen=True)
class NotifyParams:
    """알림 on/off"""
    trades: bool = True
    divergence: bool = False


@dataclass(frozen=True)
class StrategyConfig:
    """통합 전략 설정"""
    symbol: str = "EURUSD"
    timeframe: str = "15m"
    strategy_id: int = 987654
    lot_size: float = 0.02
    policy: PolicyKind = PolicyKind.OSCILLATOR
    warmup_bars: int = 100
    plot_history: int = 500
    rsi: RSIParams = field(default_factory=RSIParams)
    smoothing: SmoothingParams = field(default_factory=SmoothingParams)
    divergence: DivergenceParams = field(default_factory=DivergenceParams)
    oscillator: OscillatorParams = field(default_factory=OscillatorParams)
    band: BandParams = field(default_factory=BandParams)
    heartbeat: HeartbeatParams = field(default_factory=HeartbeatParams)
    notify: NotifyParams = field(default_factory=NotifyParams)
    raw: Dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    def __post_init__(self):
        TimeframeSpec.from_string(self.timeframe)
        if isinstance(self.strategy_id, bool) or not isinstance(self.strategy_id, int):
            raise InvalidConfiguration(f"strategy_id must be an integer, got {self.strategy_id!r}")
        _set(self, 'lot_size', _positive("lot_size", self.lot_size))
        _set(self, 'policy', PolicyKind.parse(self.policy))
        _positive_int("warmup_bars", self.warmup_bars)
        _positive_int("plot_history", self.plot_history)


_SECTIONS = {
    'rsi': RSIParams,
    'smoothing': SmoothingParams,
    'divergence': DivergenceParams,
    'oscillator': OscillatorParams,
    'band': BandParams,
    'heartbeat': HeartbeatParams,
    'notify': NotifyParams,
}


def _load_yaml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        return {}
    with open(path, 'r', encoding='utf-8') as f:
        return yaml.safe_load(f) or {}


def _deep_merge(base: Dict, override: Dict) -> Dict:
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _apply_env_overrides(config: Dict) -> Dict:
    if os.getenv("SNIPER_LOT_SIZE"):
        config["lot_size"] = float(os.getenv("SNIPER_LOT_SIZE"))
    if os.getenv("SNIPER_STRATEGY_ID"):
        config["strategy_id"] = int(os.getenv("SNIPER_STRATEGY_ID"))
    if os.getenv("SNIPER_POLICY"):
        config["policy"] = os.getenv("SNIPER_POLICY")
    return config


def _build_section(cls, name: str, values: Any):
    if values is None:
        return cls()
    if not isinstance(values, dict):
        raise InvalidConfiguration(f"'{name}' section must be a mapping, got {type(values).__name__}")
    known = {f.name for f in fields(cls)}
    unknown = sorted(set(values) - known)
    if unknown:
        raise InvalidConfiguration(f"Unknown keys in '{name}': {unknown}")
    return cls(**values)


def config_from_dict(data: Dict[str, Any], symbol: Union[str, None] = None) -> StrategyConfig:
    """dict (YAML 구조) → StrategyConfig"""
    merged = dict(data or {})
    data = dict(merged)
    sections = {name: _build_section(cls, name, data.pop(name, None)) for name, cls in _SECTIONS.items()}

    top_level = {f.name for f in fields(StrategyConfig)} - set(_SECTIONS) - {'raw'}
    unknown = sorted(k for k in data if k not in top_level and k != 'enabled')
    if unknown:
        raise InvalidConfiguration(f"Unknown config keys: {unknown}")

    kwargs = {k: v for k, v in data.items() if k in top_level}
    if symbol is not None:
        kwargs['symbol'] = symbol
    return StrategyConfig(**kwargs, **sections, raw=merged)


def load_config() -> Dict[str, Any]:
    """기본 설정 로드"""
    return _apply_env_overrides(_load_yaml(CONFIG_DIR / "default.yaml"))


def load_symbol_config(symbol: str) -> StrategyConfig:
    """심볼별 설정 로드 (default + symbol override + env)"""
    base = load_config()
    symbol_cfg = _load_yaml(SYMBOLS_DIR / f"{symbol}.yaml")
    merged = _apply_env_overrides(_deep_merge(base, symbol_cfg))
    return config_from_dict(merged, symbol=symbol)


def list_symbols(enabled_only: bool = True) -> List[str]:
    """설정된 심볼 목록"""
    if not SYMBOLS_DIR.exists():
        return []
    symbols = []
    for f in SYMBOLS_DIR.glob("*.yaml"):
        if enabled_only and not _load_yaml(f).get("enabled", True):
            continue
        symbols.append(f.stem)
    return sorted(symbols)
