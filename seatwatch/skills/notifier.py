"""알림 스킬: Webhook (Discord embed) / Log

감시 평가 결과를 알림으로 발송한다. 채널은 병렬로 발송하고
개별 채널 실패는 격리된다. 실패한 발송은 재시도하지 않는다
(다음 스캔에서 조건이 유지되면 다시 발송된다).
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Optional, Sequence

import aiohttp

from seatwatch.models.itinerary import ItineraryView
from seatwatch.models.route import RouteDetails, VehicleSeats
from seatwatch.models.watch import WatchReport

logger = logging.getLogger("seatwatch.skill.notifier")

EMBED_COLOR = 3447003
# Discord embed 제한
MAX_FIELDS = 25
MAX_FIELD_VALUE = 1024


@dataclass(frozen=True, slots=True)
class EmbedField:
    name: str
    value: str
    inline: bool = False


@dataclass(frozen=True, slots=True)
class NotificationPayload:
    """알림 페이로드 (Discord embed 1개에 대응)"""

    title: str
    description: str = ""
    fields: tuple[EmbedField, ...] = ()
    footer: str = ""

    def to_discord(self) -> dict:
        embed: dict = {"title": self.title, "color": EMBED_COLOR}
        if self.description:
            embed["description"] = self.description
        embed["fields"] = [
            {"name": f.name, "value": f.value[:MAX_FIELD_VALUE], "inline": f.inline}
            for f in self.fields[:MAX_FIELDS]
        ]
        if self.footer:
            embed["footer"] = {"text": self.footer}
        return {"content": "", "embeds": [embed]}

    def to_text(self) -> str:
        lines = [self.title]
        if self.description:
            lines.append(self.description)
        for f in self.fields:
            lines.append(f"[{f.name}]")
            lines.append(f.value.rstrip())
        if self.footer:
            lines.append(self.footer)
        return "\n".join(lines)


def _hhmm(value: Optional[datetime]) -> str:
    return f"{value:%H:%M}" if value else "--:--"


def build_direct_payload(
    details: RouteDetails,
    vehicles: Sequence[VehicleSeats] = (),
    currency: str = "CZK",
) -> NotificationPayload:
    """직통 좌석 알림: 노선 요약 + 차량별 잔여석"""
    departure_date = (
        f"{details.departure:%d.%m.%Y}" if details.departure else "??.??.????"
    )
    fields = tuple(
        EmbedField(
            name=f"Vehicle Number: {v.vehicle_number}",
            value=f"Number of Free Seats: {v.free_seats}",
            inline=True,
        )
        for v in sorted(vehicles, key=lambda v: v.vehicle_number)
        if v.free_seats > 0
    )
    return NotificationPayload(
        title=(
            f"Tickets available ({details.departure_city} -> {details.arrival_city}) - "
            f"{_hhmm(details.departure)} -> {_hhmm(details.arrival)} [{departure_date}]"
        ),
        description=(
            f"Travel Time: {details.travel_time}, "
            f"Free seats count: {details.free_seats}"
        ),
        fields=fields,
        footer=(
            f"Price From: {int(details.price_from)}{currency}, "
            f"Price To: {int(details.price_to)}{currency}"
        ),
    )


def _itinerary_field(view: ItineraryView, currency: str) -> EmbedField:
    lines = [
        f"**{leg.from_name} -> {leg.to_name}** "
        f"(Departure: {leg.departure}, Arrival: {leg.arrival})\n"
        f" *Free Seats: {leg.free_seats}, Price: {leg.price:.2f} {currency}*"
        for leg in view.legs
    ]
    if not view.is_complete:
        lines.append(f"*({view.skipped_legs} leg(s) could not be displayed)*")
    return EmbedField(
        name=f"Alternative route with Total Price: {view.total_price:.2f} {currency}",
        value="\n".join(lines),
    )


def build_alternatives_payload(
    views: Iterable[ItineraryView],
    currency: str = "CZK",
    now: Optional[datetime] = None,
) -> NotificationPayload:
    """대체 여정 알림: 여정 1개 = embed field 1개 (구간 수 오름차순 유지)"""
    views = list(views)
    if not views:
        raise ValueError("대체 여정이 없습니다")
    first = views[0]
    now = now or datetime.now()
    return NotificationPayload(
        title=(
            f"Alternative routes {first.from_name} -> {first.to_name} "
            f"({first.travel_date:%d.%m.%Y})"
        ),
        fields=tuple(_itinerary_field(v, currency) for v in views),
        footer=f"Last updated at {now:%H:%M:%S}",
    )


class NotifierSkill:
    """다채널 알림 스킬"""

    __slots__ = ("_methods", "_webhook_url", "_currency", "_timeout")

    def __init__(
        self,
        methods: Optional[list[str]] = None,
        webhook_url: str = "",
        currency: str = "CZK",
        timeout: float = 10.0,
    ) -> None:
        self._methods = methods or ["webhook"]
        self._webhook_url = webhook_url
        self._currency = currency
        self._timeout = timeout

    def build_payload(
        self, report: WatchReport, now: Optional[datetime] = None,
    ) -> Optional[NotificationPayload]:
        """평가 결과 → 페이로드. 알릴 것이 없으면 None."""
        if not report.should_notify:
            return None
        if report.kind == "direct" and report.details is not None:
            return build_direct_payload(report.details, report.vehicles, self._currency)
        if report.kind == "alternatives":
            return build_alternatives_payload(report.itineraries, self._currency, now)
        return None

    async def send(self, report: WatchReport) -> bool:
        """평가 결과를 알림으로 발송. 한 채널이라도 성공하면 True."""
        payload = self.build_payload(report)
        if payload is None:
            return False

        webhook_url = report.watch.webhook_url or self._webhook_url
        tasks: list[asyncio.Task[bool]] = []
        for method in self._methods:
            if method == "webhook":
                tasks.append(
                    asyncio.ensure_future(self._webhook_notify(payload, webhook_url))
                )
            elif method == "log":
                tasks.append(asyncio.ensure_future(self._log_notify(payload)))
            else:
                logger.warning("알 수 없는 알림 채널: %s", method)

        if not tasks:
            return False
        results = await asyncio.gather(*tasks, return_exceptions=True)
        for r in results:
            if isinstance(r, BaseException):
                logger.error("알림 채널 오류: %s", r)
        return any(r is True for r in results)

    @staticmethod
    async def _log_notify(payload: NotificationPayload) -> bool:
        """로그 출력 (dry run)"""
        logger.info("알림\n%s", payload.to_text())
        return True

    async def _webhook_notify(
        self,
        payload: NotificationPayload,
        webhook_url: str,
    ) -> bool:
        """Discord webhook 발송"""
        if not webhook_url:
            logger.warning("webhook URL이 없어 발송 생략: %s", payload.title)
            return False

        try:
            async with aiohttp.ClientSession() as session:
                async with session.post(
                    webhook_url,
                    json=payload.to_discord(),
                    timeout=aiohttp.ClientTimeout(total=self._timeout),
                ) as resp:
                    if resp.status >= 300:
                        body = await resp.text()
                        logger.error(
                            "Webhook 발송 실패 (HTTP %d): %s", resp.status, body[:200],
                        )
                        return False
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.warning("Webhook 알림 실패: %s", e)
            return False

        logger.info("Webhook 발송 완료: %s", payload.title)
        return True
