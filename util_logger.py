"""
Unified Logger System.

JSON-only structured logging for the ingest service. Every record is a
single JSON line on stdout carrying the component that emitted it and,
for job-scoped loggers, the job correlation fields.

Design Principles:
    - Enum safety for component categories and levels
    - One logger per component, job context bound through an adapter
    - Clean factory pattern

Exports:
    ComponentType: Enum for component types
    LogLevel: Enum for log levels
    LogContext: Job correlation fields
    JSONFormatter: Single-line JSON formatter
    ContextAdapter: LoggerAdapter that attaches a LogContext
    LoggerFactory: Factory for creating loggers

Dependencies:
    Standard library only (logging, enum, dataclasses, json)
"""

from enum import Enum
from typing import Optional, Dict, Any, Union
from datetime import datetime, timezone
from dataclasses import dataclass, asdict
import logging
import sys
import os
import json


# ============================================================================
# COMPONENT TYPES - Aligned with service layers
# ============================================================================

class ComponentType(Enum):
    """
    Component types aligned with the service layers.
    """
    CONTROLLER = "controller"  # Job orchestration and process host
    SERVICE = "service"        # Conversion / load / monitor / preview logic
    REPOSITORY = "repository"  # Job store, PostGIS connections
    ADAPTER = "adapter"        # ogr2ogr, BigQuery, GCS
    TRIGGER = "trigger"        # HTTP routes


# ============================================================================
# LOG LEVELS
# ============================================================================

class LogLevel(Enum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"

    def to_python_level(self) -> int:
        return getattr(logging, self.value)

    @classmethod
    def from_environment(cls) -> 'LogLevel':
        """DEBUG when DEBUG_LOGGING=true, INFO otherwise."""
        return cls.DEBUG if os.getenv('DEBUG_LOGGING', '').lower() == 'true' else cls.INFO


# ============================================================================
# LOG CONTEXT - Job correlation
# ============================================================================

@dataclass
class LogContext:
    """
    Correlation fields attached to every record of a job-scoped logger.
    """
    job_id: Optional[str] = None
    destination: Optional[str] = None  # bigquery | postgres
    caller_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {k: v for k, v in asdict(self).items() if v is not None}


# ============================================================================
# JSON FORMATTER - Structured logging
# ============================================================================

class JSONFormatter(logging.Formatter):
    """
    Emits one JSON object per line so log shippers can parse it directly.

    Long messages (ogr2ogr stderr, warehouse error lists) are truncated at
    max_message_length.
    """

    def __init__(self, max_message_length: int = 4000):
        super().__init__()
        self.max_message_length = max_message_length

    def format(self, record: logging.LogRecord) -> str:
        message = record.getMessage()
        if len(message) > self.max_message_length:
            message = message[:self.max_message_length] + "...[truncated]"

        log_obj = {
            'timestamp': datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': message,
            'function': record.funcName,
            'line': record.lineno
        }

        component = getattr(record, 'component', None)
        if component:
            log_obj['component'] = component

        context = getattr(record, 'context', None)
        if context:
            log_obj['context'] = context

        if record.exc_info:
            log_obj['exception'] = {
                'type': record.exc_info[0].__name__ if record.exc_info[0] else None,
                'message': str(record.exc_info[1]) if record.exc_info[1] else None,
                'traceback': self.formatException(record.exc_info)
            }

        return json.dumps(log_obj, default=str)


# ============================================================================
# CONTEXT ADAPTER
# ============================================================================

class ContextAdapter(logging.LoggerAdapter):
    """
    Binds a LogContext to a component logger.

    The underlying logger is shared by every job; only the adapter carries
    the job fields, so nothing accumulates per job.
    """

    def process(self, msg, kwargs):
        extra = dict(kwargs.get('extra') or {})
        context = dict(extra.get('context') or {})
        context.update(self.extra)
        extra['context'] = context
        kwargs['extra'] = extra
        return msg, kwargs


# ============================================================================
# LOGGER FACTORY - Creates component-specific loggers
# ============================================================================

class LoggerFactory:
    """
    Factory for creating component-specific loggers.

    Example:
        logger = LoggerFactory.create_logger(
            ComponentType.CONTROLLER,
            "JobOrchestrator"
        )
        logger.info("Processing job")

        job_logger = LoggerFactory.create_with_context(
            ComponentType.CONTROLLER, "JobPipeline", job_id=job_id
        )
    """

    MAX_MESSAGE_LENGTH = 4000

    @classmethod
    def create_logger(
        cls,
        component_type: ComponentType,
        name: str,
        level: Optional[LogLevel] = None
    ) -> logging.Logger:
        """
        Create (or fetch) the logger for a component.

        Args:
            component_type: Type of component
            name: Component name (e.g., "JobOrchestrator")
            level: Override for the DEBUG_LOGGING derived level

        Returns:
            Logger named "<component_type>.<name>" writing JSON to stdout
        """
        logger = logging.getLogger(f"{component_type.value}.{name}")
        logger.setLevel((level or LogLevel.from_environment()).to_python_level())

        if not any(isinstance(h.formatter, JSONFormatter) for h in logger.handlers):
            handler = logging.StreamHandler(sys.stdout)
            handler.setFormatter(JSONFormatter(cls.MAX_MESSAGE_LENGTH))
            handler.addFilter(_ComponentFilter(component_type))
            logger.addHandler(handler)
            # Records are fully handled here; root handlers would print them twice
            logger.propagate = False

        return logger

    @classmethod
    def create_with_context(
        cls,
        component_type: ComponentType,
        name: str,
        job_id: Optional[str] = None,
        destination: Optional[str] = None,
        caller_id: Optional[str] = None
    ) -> Union[logging.Logger, ContextAdapter]:
        """
        Create a job-scoped logger.

        Args:
            component_type: Type of component
            name: Component name
            job_id: Ingest job ID
            destination: Destination kind
            caller_id: Submitting caller

        Returns:
            ContextAdapter over the component logger
        """
        context = LogContext(job_id=job_id, destination=destination, caller_id=caller_id)
        return ContextAdapter(cls.create_logger(component_type, name), context.to_dict())


class _ComponentFilter(logging.Filter):
    """Stamps the component type on records passing through a factory handler."""

    def __init__(self, component_type: ComponentType):
        super().__init__()
        self.component_type = component_type

    def filter(self, record: logging.LogRecord) -> bool:
        if not getattr(record, 'component', None):
            record.component = self.component_type.value
        return True
