"""에이전트 패키지

Multi-Agent 아키텍처:
  OrchestratorAgent - 총괄 조율
  InputAgent        - 감시 등록
  ScannerAgent      - 주기 스캔
  NotifierAgent     - 알림 발송
"""

from seatwatch.agents.base import BaseAgent, AgentLifecycle
from seatwatch.agents.orchestrator import OrchestratorAgent
from seatwatch.agents.input_agent import InputAgent
from seatwatch.agents.scanner_agent import ScannerAgent
from seatwatch.agents.notifier_agent import NotifierAgent

__all__ = [
    "BaseAgent",
    "AgentLifecycle",
    "OrchestratorAgent",
    "InputAgent",
    "ScannerAgent",
    "NotifierAgent",
]
