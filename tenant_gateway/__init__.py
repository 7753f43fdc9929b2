"""Subdomain-based tenant resolution with row-level security context"""

__version__ = "1.0.0"
