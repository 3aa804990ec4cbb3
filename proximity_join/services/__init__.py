"""Downstream services for join results.

This package contains services that consume join results:
- NotificationService: Toasts and UI refreshes sent to the host application
"""
