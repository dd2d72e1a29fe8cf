"""Log sink adapters for lifecycle events."""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterable
from datetime import UTC, datetime
from typing import TYPE_CHECKING, TextIO

from pipewright_core.ports.lifecycle import LogSinkProtocol
from pipewright_schemas.config import LoggingConfig
from pipewright_schemas.logs import LogEntry
from pipewright_schemas.primitives import LogLevel, LogSinkType

if TYPE_CHECKING:
    from pipewright_schemas.redaction import Redactor

_STDLIB_LEVELS = {
    LogLevel.DEBUG: logging.DEBUG,
    LogLevel.INFO: logging.INFO,
    LogLevel.WARN: logging.WARNING,
    LogLevel.ERROR: logging.ERROR,
}


class CompositeLogSink(LogSinkProtocol):
    """Log sink that forwards entries to multiple sinks."""

    def __init__(self, sinks: Iterable[LogSinkProtocol]) -> None:
        """Initialize the composite log sink."""
        self._sinks = list(sinks)

    async def emit_log(self, entry: LogEntry) -> None:
        """Forward log entries to each sink."""
        for sink in self._sinks:
            await sink.emit_log(entry)


class ConsoleLogSink(LogSinkProtocol):
    """Log sink that writes JSONL entries to a stream."""

    def __init__(self, stream: TextIO | None = None) -> None:
        """Initialize the console log sink.

        Args:
            stream: Output stream to write JSONL log entries.
        """
        self._stream = stream or sys.stderr

    async def emit_log(self, entry: LogEntry) -> None:
        """Write log entry JSONL to the output stream."""
        payload = entry.model_dump_json(exclude_none=False)
        self._stream.write(payload + "\n")
        self._stream.flush()


class LoggerLogSink(LogSinkProtocol):
    """Log sink that forwards entries to a standard library logger."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        """Initialize the logger sink.

        Args:
            logger: Target logger; defaults to the ``pipewright`` logger.
        """
        self._logger = logger or logging.getLogger("pipewright")

    async def emit_log(self, entry: LogEntry) -> None:
        """Log the entry's message at its level with the event as context."""
        level = _STDLIB_LEVELS.get(LogLevel(entry.level), logging.INFO)
        scope = ":".join(part for part in (entry.pipeline, entry.phase) if part)
        prefix = f"[{scope}] " if scope else ""
        self._logger.log(
            level,
            "%s%s",
            prefix,
            entry.message,
            extra={"event": entry.event, "run_id": str(entry.run_id)},
        )


class NoopLogSink(LogSinkProtocol):
    """Log sink that drops all log entries."""

    async def emit_log(self, entry: LogEntry) -> None:
        """Ignore log entries."""
        return None


class RedactingLogSink(LogSinkProtocol):
    """Log sink wrapper that redacts secrets before forwarding to a delegate sink."""

    def __init__(self, delegate: LogSinkProtocol, redactor: Redactor) -> None:
        """Initialize the redacting log sink.

        Args:
            delegate: Underlying sink to forward redacted entries to
            redactor: Redactor instance to apply before writing
        """
        self._delegate = delegate
        self._redactor = redactor

    async def emit_log(self, entry: LogEntry) -> None:
        """Redact secrets from entry before forwarding to delegate sink."""
        redacted_message = self._redactor.redact(entry.message)
        redacted_data = None
        if entry.data is not None:
            redacted_data = self._redactor.redact_dict(entry.data)

        message_changed = redacted_message != entry.message
        data_changed = entry.data is not None and redacted_data != entry.data

        redacted_entry = entry.model_copy(
            update={"message": redacted_message, "data": redacted_data}
        )
        await self._delegate.emit_log(redacted_entry)

        if message_changed or data_changed:
            debug_entry = LogEntry(
                timestamp=datetime.now(UTC).isoformat().replace("+00:00", "Z"),
                level=LogLevel.DEBUG,
                event="redaction_applied",
                run_id=entry.run_id,
                pipeline=entry.pipeline,
                phase=entry.phase,
                message="Secret redaction applied to log entry",
                data={
                    "original_event": entry.event,
                    "message_redacted": message_changed,
                    "data_redacted": data_changed,
                },
            )
            await self._delegate.emit_log(debug_entry)


def build_log_sink(
    logging_config: LoggingConfig,
    *,
    stream: TextIO | None = None,
    logger: logging.Logger | None = None,
    redactor: Redactor | None = None,
) -> LogSinkProtocol:
    """Build a log sink from configuration.

    Args:
        logging_config: Logging configuration for the invocation.
        stream: Optional stream for console logging.
        logger: Optional logger for the logger sink.
        redactor: Optional redactor to apply before writing logs.

    Returns:
        LogSinkProtocol: Configured log sink.

    Raises:
        ValueError: If an unsupported log sink type is configured.
    """
    sinks: list[LogSinkProtocol] = []
    for sink_config in logging_config.sinks:
        if sink_config.type == LogSinkType.CONSOLE:
            sinks.append(ConsoleLogSink(stream=stream))
        elif sink_config.type == LogSinkType.LOGGER:
            sinks.append(LoggerLogSink(logger))
        elif sink_config.type == LogSinkType.NOOP:
            sinks.append(NoopLogSink())
        else:
            raise ValueError(f"Unsupported log sink type: {sink_config.type}")

    if redactor is not None:
        sinks = [RedactingLogSink(sink, redactor) for sink in sinks]

    if len(sinks) == 1:
        return sinks[0]
    return CompositeLogSink(sinks)
