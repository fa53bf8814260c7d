"""
Kafka consumers for events published by other services.

Currently only employee lifecycle events, which keep the local employee
cache in step with the employee management service.
"""

from .employee_handlers import register_employee_handlers

__all__ = ["register_employee_handlers"]
