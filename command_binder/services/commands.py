"""Commands accepted by the ``POST /commands`` endpoint and their handlers."""

import logging
from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import Field

from ..core.commands import Command
from ..core.identity import Principal
from ..core.markers import allow_anonymous, authorize, claim_requirement
from .dispatcher import CommandDispatcher


logger = logging.getLogger(__name__)

dispatcher = CommandDispatcher()


class ReportFormat(str, Enum):
    CSV = "csv"
    PDF = "pdf"


class ServiceCommand(Command):
    """Family shared by every command the service accepts."""

    type_name = "service.command"


@allow_anonymous
class PingCommand(ServiceCommand):
    type_name = "service.ping"

    message: str = "ping"


@authorize(roles="Administrator")
class RotateKeysCommand(ServiceCommand):
    type_name = "service.rotate-keys"

    key_id: str = Field(min_length=1)
    reason: Optional[str] = None


@claim_requirement("department", "reporting")
class PublishReportCommand(ServiceCommand):
    type_name = "service.publish-report"

    report_id: str = Field(min_length=1)
    output_format: ReportFormat = ReportFormat.PDF


@dispatcher.handler(PingCommand)
def handle_ping(command: PingCommand, principal: Principal) -> dict:
    return {"reply": command.message, "timestamp": datetime.now().isoformat()}


@dispatcher.handler(RotateKeysCommand)
def handle_rotate_keys(command: RotateKeysCommand, principal: Principal) -> dict:
    logger.info(f"Key {command.key_id} rotation requested by {principal.name}")
    return {"keyId": command.key_id, "rotated": True}


@dispatcher.handler(PublishReportCommand)
def handle_publish_report(command: PublishReportCommand, principal: Principal) -> dict:
    return {"reportId": command.report_id, "format": command.output_format.value, "published": True}
