"""Diagnostics sink passed explicitly into each generation stage.

Stages never reach for a module-level logger; they report through the sink
they were given, which forwards to :mod:`logging` and keeps an ordered copy
of everything reported so a stage can be checked in isolation.
"""

import logging
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger("gql_sdkgen")


@dataclass(frozen=True)
class DiagnosticRecord:
    level: int
    stage: str
    message: str
    data: dict[str, Any] = field(default_factory=dict)


class Diagnostics:
    """Collects stage reports and forwards them to a logger.

    Example:
        diagnostics = Diagnostics()
        context = build_context(ast, config, diagnostics=diagnostics)
        assert diagnostics.messages("context")
    """

    def __init__(self, target: logging.Logger | None = None):
        self.logger = target or logger
        self.records: list[DiagnosticRecord] = []

    def log(self, level: int, stage: str, message: str, **data: Any):
        self.records.append(DiagnosticRecord(level, stage, message, dict(data)))
        if data:
            self.logger.log(level, "[%s] %s %s", stage, message, data)
        else:
            self.logger.log(level, "[%s] %s", stage, message)

    def debug(self, stage: str, message: str, **data: Any):
        self.log(logging.DEBUG, stage, message, **data)

    def info(self, stage: str, message: str, **data: Any):
        self.log(logging.INFO, stage, message, **data)

    def warning(self, stage: str, message: str, **data: Any):
        self.log(logging.WARNING, stage, message, **data)

    def fatal(self, stage: str, message: str, **data: Any):
        self.log(logging.CRITICAL, stage, message, **data)

    def messages(self, stage: str | None = None, level: int | None = None) -> list[str]:
        """Return reported messages, optionally filtered by stage and exact level."""
        return [
            record.message
            for record in self.records
            if (stage is None or record.stage == stage)
            and (level is None or record.level == level)
        ]
