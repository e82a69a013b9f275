"""
Safe Jobs - Job Search Safety & Proximity Engine

Finds jobs near a user, verifies new job postings against a rule set,
and annotates listings with risk tiers and AI-assisted safety analysis.
"""

__version__ = "0.3.0"
__author__ = "Safe Jobs"
