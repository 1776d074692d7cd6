# replay_csv.py
# OHLCV CSV를 PaperGateway로 재생 (RSI Sniper / Mean Snapper)
# - 앞쪽 N봉 warm-up, 이후 봉 단위 라이브 처리
# - 거래 목록 + 요약 출력, 지표 시리즈 CSV 저장 (선택)

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import replace
from pathlib import Path

# 프로젝트 루트
ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(ROOT))

from sniper.bot import replay
from sniper.config import load_symbol_config
from sniper.data import load_csv_bars
from sniper.execution import LoggingNotifier
from sniper.execution.state_machine import PolicyKind


def main():
    parser = argparse.ArgumentParser(description='Replay OHLCV CSV through RSI Sniper')
    parser.add_argument('csv', type=str, help='OHLCV CSV (timestamp,open,high,low,close[,volume])')
    parser.add_argument('--symbol', type=str, default='EURUSD', help='Symbol config name')
    parser.add_argument('--policy', type=str, choices=[p.value for p in PolicyKind], default=None,
                        help='Override policy')
    parser.add_argument('--warmup', type=int, default=None, help='Warm-up bars (default: config)')
    parser.add_argument('--plot-out', type=str, default=None, help='Write indicator series CSV')
    parser.add_argument('--notify', action='store_true', help='Log notifications')
    parser.add_argument('-v', '--verbose', action='store_true')
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )

    config = load_symbol_config(args.symbol)
    if args.policy:
        config = replace(config, policy=PolicyKind(args.policy))

    df = load_csv_bars(args.csv)
    result = replay(
        df,
        config,
        warmup_bars=args.warmup,
        notifier=LoggingNotifier() if args.notify else None,
    )

    print("=" * 70)
    print(f"Replay: {config.symbol} ({config.policy.value}) - {len(df)} bars")
    print("=" * 70)
    for t in result.trades:
        print(
            f"  #{t.ticket:<4} {t.direction.value:<5} bar {t.opened_at_bar:>6} -> {t.closed_at_bar:<6} "
            f"{t.entry_price:>12.5f} -> {t.exit_price:<12.5f} PnL {t.pnl:+.4f}"
        )
    print("-" * 70)
    print(f"Trades: {len(result.trades)} | Win rate: {result.win_rate:.1f}% | PnL: {result.total_pnl:+.4f}")
    print(f"Divergences: {len(result.divergences)}")

    if args.plot_out:
        result.frame.to_csv(args.plot_out)
        print(f"Indicator series -> {args.plot_out}")


if __name__ == "__main__":
    main()
