"""
Kite Assets

Multi-tenant asset inventory service: organizations, users with four
roles, categorized and located assets, dashboards, PDF reports and QR
labels.
"""

__version__ = "1.0.0"
