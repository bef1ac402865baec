"""RegioJet 좌석 감시 서비스 - CLI 진입점

사용 예시:
    seatwatch stations praha
    seatwatch routes --from "Praha hl.n." --to Ostrava --date 2026-11-02
    seatwatch add --from 372825000 --to 372842002 --route 5400543021 \
        --webhook https://discord.com/api/webhooks/...
    seatwatch discover --from 372825000 --to 372842002 --route 5400543021
    seatwatch run --store watches.json
"""

from __future__ import annotations

import argparse
import asyncio
import signal
import sys
from datetime import date
from typing import Optional

from seatwatch.agents.input_agent import InputAgent
from seatwatch.agents.orchestrator import OrchestratorAgent, load_stations
from seatwatch.models.config import WatchdogConfig
from seatwatch.models.errors import SeatwatchError
from seatwatch.skills.parser import ParserSkill
from seatwatch.skills.route_client import RouteClientSkill
from seatwatch.skills.watch_check import WatchCheckSkill
from seatwatch.utils.logging_config import setup_logging
from seatwatch.utils.watch_store import WatchStore


BANNER = r"""
  ╔══════════════════════════════════════════════╗
  ║   RegioJet 좌석 감시 서비스 v0.1.0           ║
  ║   Seat Watchdog & Alternative Itineraries    ║
  ╚══════════════════════════════════════════════╝
"""


def parse_date(s: str) -> date:
    """argparse용 날짜 파싱 (YYYY-MM-DD / DD.MM.YYYY)"""
    try:
        return ParserSkill.parse_date(s)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from e


def parse_methods(s: str) -> list[str]:
    methods = [m.strip() for m in s.split(",") if m.strip()]
    unknown = set(methods) - {"webhook", "log"}
    if not methods or unknown:
        raise argparse.ArgumentTypeError(
            f"알림 방법은 webhook,log 중에서 선택하세요: '{s}'"
        )
    return methods


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="seatwatch",
        description="RegioJet 좌석 감시 + 대체 여정 탐색",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "환경 변수 SEATWATCH_* 로 기본 설정을 바꿀 수 있습니다\n"
            "  예: SEATWATCH_SCAN_INTERVAL=120 SEATWATCH_WEBHOOK_URL=https://..."
        ),
    )
    p.add_argument("--store", default=None, help="감시 저장소 파일 (JSON)")
    p.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
    )
    p.add_argument("--log-file", default=None, help="로그 파일 경로")
    p.add_argument("--no-color", action="store_true", help="컬러 로그 끄기")

    sub = p.add_subparsers(dest="command", required=True)

    add = sub.add_parser("add", help="감시 등록")
    add.add_argument("--from", dest="station_from", required=True, help="출발역 (ID 또는 이름)")
    add.add_argument("--to", dest="station_to", required=True, help="도착역 (ID 또는 이름)")
    add.add_argument("--route", dest="route_id", required=True, help="노선 ID")
    add.add_argument("--webhook", default="", help="Discord webhook URL")

    run_p = sub.add_parser("run", help="감시 스캔 실행")
    run_p.add_argument("--once", action="store_true", help="스캔 1회 후 종료")
    run_p.add_argument("--interval", type=float, default=None, help="스캔 주기 초 (기본: 60)")
    run_p.add_argument(
        "--notify", type=parse_methods, default=None,
        help="알림 방법 (webhook,log 콤마 구분)",
    )
    run_p.add_argument(
        "--parallel", type=int, default=None,
        help="같은 깊이 후보 구간 동시 조회 수 (기본: 1)",
    )

    disc = sub.add_parser("discover", help="대체 여정 1회 탐색")
    disc.add_argument("--from", dest="station_from", required=True, help="출발역 (ID 또는 이름)")
    disc.add_argument("--to", dest="station_to", required=True, help="도착역 (ID 또는 이름)")
    disc.add_argument("--route", dest="route_id", required=True, help="노선 ID")
    disc.add_argument(
        "--date", type=parse_date, default=None,
        help="출발 날짜 (기본: 노선 출발 날짜)",
    )
    disc.add_argument("--parallel", type=int, default=None)

    routes = sub.add_parser("routes", help="두 역 사이 노선 검색")
    routes.add_argument("--from", dest="station_from", required=True)
    routes.add_argument("--to", dest="station_to", required=True)
    routes.add_argument("--date", type=parse_date, required=True, help="출발 날짜 (YYYY-MM-DD)")

    stations = sub.add_parser("stations", help="역 검색")
    stations.add_argument("query", nargs="?", default="", help="역 이름 일부")
    stations.add_argument("--limit", type=int, default=20)
    return p


def build_config(args: argparse.Namespace) -> WatchdogConfig:
    """환경 변수 → CLI 인자 순으로 덮어쓴 설정"""
    max_ticks: Optional[int] = 1 if getattr(args, "once", False) else None
    return WatchdogConfig.from_env(
        store_path=args.store,
        scan_interval=getattr(args, "interval", None),
        notification_methods=getattr(args, "notify", None),
        max_parallel_probes=getattr(args, "parallel", None),
        max_ticks=max_ticks,
    )


async def cmd_add(args: argparse.Namespace, config: WatchdogConfig) -> int:
    client = RouteClientSkill.from_config(config)
    store = WatchStore(config.store_path or None)
    if store.path is None:
        print("  [경고] --store 없이 등록하면 프로세스 종료와 함께 사라집니다")

    stations = await load_stations(client)
    agent = InputAgent(
        client=client,
        store=store,
        stations=stations,
        default_webhook=config.webhook_url,
    )
    watch = await agent.register({
        "station_from_id": args.station_from,
        "station_to_id": args.station_to,
        "route_id": args.route_id,
        "webhook_url": args.webhook,
    })
    print(f"  감시 등록 완료: {watch.summary()}")
    print(f"  {stations.name_of(watch.station_from_id)} → {stations.name_of(watch.station_to_id)}")
    return 0


async def cmd_discover(args: argparse.Namespace, config: WatchdogConfig) -> int:
    client = RouteClientSkill.from_config(config)
    stations = await load_stations(client)
    station_from = stations.resolve(args.station_from)
    station_to = stations.resolve(args.station_to)

    travel_date = args.date
    if travel_date is None:
        details = await client.get_route_details(args.route_id, station_from, station_to)
        travel_date = details.departure_date
        if travel_date is None:
            print("  [오류] 노선 출발 날짜를 알 수 없습니다. --date를 지정하세요")
            return 1

    checker = WatchCheckSkill(
        client, stations, max_parallel_probes=config.max_parallel_probes,
    )
    views = await checker.find_alternatives(
        args.route_id, station_from, station_to, travel_date,
    )
    if not views:
        print("  연결 가능한 여정이 없습니다")
        return 0
    for i, view in enumerate(views, 1):
        print(f"\n  [{i}] {view.display(config.currency)}")
    print(f"\n  구간 조회 {checker.probe_count}회, API 요청 {client.request_count}회")
    return 0


async def cmd_routes(args: argparse.Namespace, config: WatchdogConfig) -> int:
    client = RouteClientSkill.from_config(config)
    stations = await load_stations(client)
    offers = await client.fetch_routes(
        stations.resolve(args.station_from),
        stations.resolve(args.station_to),
        args.date,
    )
    if not offers:
        print("  해당 날짜의 열차 노선이 없습니다")
    for offer in offers:
        print(f"  {offer.display()}")
    return 0


async def cmd_stations(args: argparse.Namespace, config: WatchdogConfig) -> int:
    client = RouteClientSkill.from_config(config)
    stations = await load_stations(client)
    hits = stations.search(args.query, limit=args.limit)
    if not hits:
        print(f"  '{args.query}'에 해당하는 역이 없습니다")
    for sid, name in hits:
        print(f"  {sid:>12}  {name}")
    return 0


async def cmd_run(args: argparse.Namespace, config: WatchdogConfig) -> int:
    """OrchestratorAgent 기반 실행"""
    orchestrator = OrchestratorAgent(config)

    loop = asyncio.get_running_loop()

    def _signal_handler() -> None:
        print("\n\n  Ctrl+C 감지 - 스캔 중지 중...")
        orchestrator.stop()

    if sys.platform != "win32":
        loop.add_signal_handler(signal.SIGINT, _signal_handler)
        loop.add_signal_handler(signal.SIGTERM, _signal_handler)

    print(BANNER)
    print("  중지하려면 Ctrl+C를 누르세요\n")

    metrics = await orchestrator.run()
    print(f"\n{metrics.summary()}")
    return 0


COMMANDS = {
    "add": cmd_add,
    "run": cmd_run,
    "discover": cmd_discover,
    "routes": cmd_routes,
    "stations": cmd_stations,
}


async def dispatch(args: argparse.Namespace, config: WatchdogConfig) -> int:
    try:
        return await COMMANDS[args.command](args, config)
    finally:
        await RouteClientSkill.close()


def cli_entry() -> None:
    """CLI 진입점 (pyproject.toml scripts에서 호출)"""
    sys.exit(main())


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(
        level=args.log_level,
        log_file=args.log_file,
        color=False if args.no_color else None,
    )

    try:
        config = build_config(args)
        return asyncio.run(dispatch(args, config))
    except (ValueError, SeatwatchError) as e:
        print(f"  [오류] {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\n  프로그램 종료")
        return 0


if __name__ == "__main__":
    sys.exit(main())
