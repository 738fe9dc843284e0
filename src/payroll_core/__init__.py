"""Payroll domain core: employees, departments, pay records and their events."""

__version__ = "0.1.0"
