"""pipewright-io: loaders, log sinks and provider adapters."""

from pipewright_io.loader import (
    ConfigLoadError,
    load_account_config,
    load_pipeline_spec,
)
from pipewright_io.sinks import (
    CompositeLogSink,
    ConsoleLogSink,
    LoggerLogSink,
    NoopLogSink,
    RedactingLogSink,
    build_log_sink,
)

__all__ = [
    "CompositeLogSink",
    "ConfigLoadError",
    "ConsoleLogSink",
    "LoggerLogSink",
    "NoopLogSink",
    "RedactingLogSink",
    "build_log_sink",
    "load_account_config",
    "load_pipeline_spec",
]
