"""
Core Orchestration Components.

Contains the job model, the job state machine and the orchestration
classes, separated from destination-specific loading logic.

Structure:
    models/: Pure data structures (no business logic)
    logic/: State transitions and progress rules
    errors.py: Error codes
    job_store.py: In-memory job registry with ordered change delivery
    orchestrator.py: Job lifecycle and pipeline supervision

Exports:
    JobStore: Job registry
    JobOrchestrator: Job lifecycle entry point
"""

# Make subpackages available first (no circular dependencies)
from . import models
from . import logic

# Lazy imports to avoid circular dependencies
# These are imported on first access via __getattr__
_LAZY_IMPORTS = {
    'JobStore': '.job_store',
    'JobOrchestrator': '.orchestrator',
}


def __getattr__(name):
    """Lazy import core classes to avoid circular dependencies."""
    if name in _LAZY_IMPORTS:
        from importlib import import_module
        module = import_module(_LAZY_IMPORTS[name], package='core')
        return getattr(module, name)
    raise AttributeError(f"module 'core' has no attribute '{name}'")


__all__ = [
    'JobStore',
    'JobOrchestrator',
    'models',
    'logic'
]
