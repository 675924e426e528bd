"""
Vancouver open-data ingestion: API client and database importer.
"""
