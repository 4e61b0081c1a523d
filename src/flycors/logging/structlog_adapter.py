# Copyright 2026 Firefly Software Solutions Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""Structured logging for the ``flycors.*`` loggers.

The engine and the policy store emit structlog events (``cors_denied``,
``cors_policy_conflict``, ``cors_policy_reloaded``, ...). This module routes
them through a single handler on the ``flycors`` stdlib logger so a host
application's own logging setup is left alone.
"""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass, field
from typing import Any, TextIO

import structlog

from flycors.core.config import Config

HANDLER_NAME = "flycors"

BASE_LOGGER = "flycors"

# Short names accepted under ``flycors.logging.level``.
LOGGER_ALIASES = {
    "engine": "flycors.engine",
    "policy": "flycors.policy",
}


@dataclass(frozen=True)
class LoggingSettings:
    """Resolved ``flycors.logging`` section."""

    root_level: str = "INFO"
    format: str = "console"
    stream: str = "stderr"
    levels: dict[str, str] = field(default_factory=dict)


class _StderrHandler(logging.StreamHandler):
    """Writes to whatever ``sys.stderr`` is at emit time."""

    @property  # type: ignore[override]
    def stream(self) -> TextIO:
        return sys.stderr

    @stream.setter
    def stream(self, _value: TextIO) -> None:
        pass


class _StdoutHandler(_StderrHandler):
    @property  # type: ignore[override]
    def stream(self) -> TextIO:
        return sys.stdout

    @stream.setter
    def stream(self, _value: TextIO) -> None:
        pass


def drop_unset_fields(_logger: Any, _method: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """Remove ``None`` fields such as the denial ``reason`` of an approval."""
    return {k: v for k, v in event_dict.items() if v is not None}


def read_settings(config: Config) -> LoggingSettings:
    level_section = dict(config.get_section("flycors.logging.level"))
    root = str(level_section.pop("root", "INFO")).upper()
    levels = {LOGGER_ALIASES.get(name, name): str(level).upper() for name, level in level_section.items()}
    return LoggingSettings(
        root_level=root,
        format=str(config.get("flycors.logging.format", "console")).lower(),
        stream=str(config.get("flycors.logging.stream", "stderr")).lower(),
        levels=levels,
    )


class StructlogAdapter:
    """Configures structlog and the ``flycors`` logger hierarchy.

    Reads ``flycors.logging``:

    - ``level.root`` for the ``flycors`` logger, and ``level.engine``,
      ``level.policy`` or any dotted logger name for finer control
    - ``format``: ``console`` or ``json``
    - ``stream``: ``stderr`` (default) or ``stdout``

    Passing *stream* pins the output to that file object instead.
    """

    def __init__(self, stream: TextIO | None = None) -> None:
        self._stream = stream
        self.settings = LoggingSettings()

    def configure(self, config: Config) -> LoggingSettings:
        self.settings = read_settings(config)
        self._setup_structlog()
        self._install_handler()
        for name, level in self.settings.levels.items():
            self.set_level(name, level)
        return self.settings

    def get_logger(self, name: str) -> Any:
        return structlog.get_logger(name)

    def set_level(self, name: str, level: str) -> None:
        logging.getLogger(name).setLevel(getattr(logging, level.upper(), logging.INFO))

    def _setup_structlog(self) -> None:
        renderer: structlog.types.Processor
        if self.settings.format == "json":
            renderer = structlog.processors.JSONRenderer()
        else:
            renderer = structlog.dev.ConsoleRenderer()

        structlog.configure(
            processors=[
                structlog.contextvars.merge_contextvars,
                structlog.stdlib.filter_by_level,
                structlog.stdlib.add_logger_name,
                structlog.stdlib.add_log_level,
                structlog.processors.TimeStamper(fmt="iso"),
                drop_unset_fields,
                structlog.processors.UnicodeDecoder(),
                renderer,
            ],
            logger_factory=structlog.stdlib.LoggerFactory(),
            wrapper_class=structlog.stdlib.BoundLogger,
            cache_logger_on_first_use=True,
        )

    def _install_handler(self) -> None:
        handler: logging.Handler
        if self._stream is not None:
            handler = logging.StreamHandler(self._stream)
        elif self.settings.stream == "stdout":
            handler = _StdoutHandler()
        else:
            handler = _StderrHandler()
        handler.set_name(HANDLER_NAME)
        handler.setFormatter(logging.Formatter("%(message)s"))

        base = logging.getLogger(BASE_LOGGER)
        for existing in list(base.handlers):
            if existing.get_name() == HANDLER_NAME:
                base.removeHandler(existing)
        base.addHandler(handler)
        base.setLevel(getattr(logging, self.settings.root_level, logging.INFO))
        base.propagate = False
