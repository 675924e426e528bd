"""
VanProperty Insights - Core Package

Vancouver property tax browsing service: property search and statistics,
user watchlists and saved searches, plus the open-data import.
"""

__version__ = "1.0.0"
