"""Enumerations for FleetPulse simulation models."""

from enum import Enum


class HealthStatus(str, Enum):
    """Health classification at server and system scope."""

    HEALTHY = "healthy"
    WARNING = "warning"
    ERROR = "error"


class TaskStatus(str, Enum):
    """Lifecycle state of a monitoring task."""

    QUEUED = "queued"
    RUNNING = "running"
    FAILED = "failed"
    COMPLETED = "completed"


class AlertSeverity(str, Enum):
    """Alert severity, most severe first."""

    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class NodeStatus(str, Enum):
    """Status of a node behind a load balancer."""

    HEALTHY = "healthy"
    WARNING = "warning"
    ERROR = "error"


class ConnectionStatus(str, Enum):
    """Reported state of the tick stream."""

    CONNECTED = "connected"
    DISCONNECTED = "disconnected"
    RECONNECTING = "reconnecting"
