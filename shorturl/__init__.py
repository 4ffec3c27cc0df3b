"""
Short URL service: maps URLs to sequential numeric identifiers and redirects back.
"""

__version__ = "1.0.0"
