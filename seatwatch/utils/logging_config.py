"""로깅 설정

루트 로거에 콘솔 핸들러(컬러 선택)와 선택적 파일 핸들러를 붙인다.
컬러는 stdout이 터미널일 때만 자동으로 켜지고 NO_COLOR 환경 변수가 있으면 꺼진다.
"""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path
from typing import Optional, TextIO


_LEVEL_COLORS = {
    "DEBUG": "\033[36m",
    "INFO": "\033[32m",
    "WARNING": "\033[33m",
    "ERROR": "\033[31m",
    "CRITICAL": "\033[35m",
}
_RESET = "\033[0m"

CONSOLE_FORMAT = "%(asctime)s %(levelname)s %(name)s │ %(message)s"
PLAIN_FORMAT = "%(asctime)s %(levelname)-8s %(name)s │ %(message)s"
FILE_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

# 스캔마다 연결/요청 로그를 쏟아내는 라이브러리 로거
QUIET_LOGGERS: tuple[str, ...] = ("aiohttp", "asyncio")


class ColorFormatter(logging.Formatter):
    """레벨 이름에 ANSI 색을 입히는 포매터"""

    def format(self, record: logging.LogRecord) -> str:
        plain = record.levelname
        color = _LEVEL_COLORS.get(plain)
        if color is None:
            return super().format(record)
        record.levelname = f"{color}{plain:<8}{_RESET}"
        try:
            return super().format(record)
        finally:
            # 파일 핸들러가 같은 record를 이어서 쓴다
            record.levelname = plain


def _use_color(stream: TextIO) -> bool:
    if os.environ.get("NO_COLOR"):
        return False
    isatty = getattr(stream, "isatty", None)
    return bool(isatty and isatty())


def _console_handler(color: Optional[bool]) -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    if color is None:
        color = _use_color(sys.stdout)
    formatter_cls = ColorFormatter if color else logging.Formatter
    handler.setFormatter(formatter_cls(
        fmt=CONSOLE_FORMAT if color else PLAIN_FORMAT,
        datefmt="%H:%M:%S",
    ))
    return handler


def _file_handler(log_file: str | Path) -> logging.Handler:
    path = Path(log_file)
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setFormatter(logging.Formatter(fmt=FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    return handler


def setup_logging(
    level: str = "INFO",
    log_file: str | Path | None = None,
    color: Optional[bool] = None,
) -> None:
    """로깅 초기화 (기존 루트 핸들러는 교체된다)

    Args:
        level: 로그 레벨 (DEBUG, INFO, WARNING, ERROR)
        log_file: 로그 파일 경로 (None이면 콘솔만)
        color: 컬러 출력 여부 (None이면 자동 판단)
    """
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    root.handlers.clear()

    root.addHandler(_console_handler(color))
    if log_file:
        root.addHandler(_file_handler(log_file))

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
