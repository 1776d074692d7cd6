"""
Config Module
=============

심볼별 전략 파라미터 관리.
YAML 파일에서 설정 로드 + 환경변수 오버라이드.
"""

from .loader import (
    load_config,
    load_symbol_config,
    config_from_dict,
    list_symbols,
    StrategyConfig,
    RSIParams,
    SmoothingParams,
    DivergenceParams,
    OscillatorParams,
    BandParams,
    HeartbeatParams,
    NotifyParams,
)

__all__ = [
    'load_config',
    'load_symbol_config',
    'config_from_dict',
    'list_symbols',
    'StrategyConfig',
    'RSIParams',
    'SmoothingParams',
    'DivergenceParams',
    'OscillatorParams',
    'BandParams',
    'HeartbeatParams',
    'NotifyParams',
]
