from .dashboard import MonitorDashboard

__all__ = ["MonitorDashboard"]
