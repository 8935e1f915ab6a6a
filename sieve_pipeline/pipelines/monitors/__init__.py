from .resource_monitor import ResourceMonitor, ResourceSnapshot

__all__ = ['ResourceMonitor', 'ResourceSnapshot']
