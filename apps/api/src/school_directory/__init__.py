"""
School Directory API

Browse and submit school records with duplicate-safe submission and
content-addressed image storage.
"""

__version__ = "0.1.0"
