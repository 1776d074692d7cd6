"""
RSI Sniper - Streaming RSI Strategy Engine
==========================================

Core Components:
- anchor/: 증분 RSI + RSI MA/BB + 가격 BB, 지연 다이버전스
- execution/: 단일 포지션 상태 머신 + 게이트웨이/알림 계약
- risk/: strategy_id 포지션 슬롯
- features/: 차트 출력 시리즈
- config/: YAML 설정 로더
- utils/: heartbeat, ring buffer, timeframe
- bot.py: 봉/타이머 이벤트 오케스트레이션 + 리플레이
"""

__version__ = "1.0.0"
