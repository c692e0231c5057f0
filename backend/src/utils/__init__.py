"""
Utility modules for the care calendar application.

This package contains shared helpers used across the application,
including datetime utilities and clock-time arithmetic.
"""
