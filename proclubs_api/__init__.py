"""
EA FC Pro Clubs subscription API.
"""

__version__ = "1.0.0"
