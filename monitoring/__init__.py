"""
Monitoring Module

Contains all monitoring-related functionality including:
- Page inspection and browser automation
- Change detection
- Notification delivery
- Trigger orchestration and error reporting
"""
