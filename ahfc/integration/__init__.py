# Integration Module
"""
Audit logging of container operations.
"""

# Lazy imports to avoid RuntimeWarning when running module directly
def __getattr__(name):
    """Lazy import to avoid circular import issues."""
    from . import event_logger
    return getattr(event_logger, name)

__all__ = [
    'EventType',
    'SecurityEvent',
    'EventLogger',
    'get_file_id',
]
