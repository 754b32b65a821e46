"""
Money Tracker - Source Package

Client-side state and persistence core for a personal finance tracker:
user profiles, transactions grouped by month, templates, tags, period
totals and portable import/export of a user's data.

DESIGN PRINCIPLES:
1. Validate first, then mutate
2. Every mutation is written back in full, immediately
3. Failures are reported, never fatal
4. Presentation talks to one session object only
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Money Tracker Team"
