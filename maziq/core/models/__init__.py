"""
Domain models — Pydantic types for the provisioning engine.

All models are re-exported here for convenient access:

    from maziq.core.models import Software, Status, Task, RunConfig
"""

from maziq.core.models.action import Action, TaskOutcome, TaskState
from maziq.core.models.run import RunConfig
from maziq.core.models.software import (
    DetectionMethod,
    InstallerKind,
    Recipe,
    Software,
    SoftwareKind,
    VersionCheck,
)
from maziq.core.models.status import Status, StatusState
from maziq.core.models.task import InvalidTransition, Task, TaskEvent
from maziq.core.models.template import Template

__all__ = [
    # action.py
    "Action",
    "TaskOutcome",
    "TaskState",
    # run.py
    "RunConfig",
    # software.py
    "DetectionMethod",
    "InstallerKind",
    "Recipe",
    "Software",
    "SoftwareKind",
    "VersionCheck",
    # status.py
    "Status",
    "StatusState",
    # task.py
    "InvalidTransition",
    "Task",
    "TaskEvent",
    # template.py
    "Template",
]
