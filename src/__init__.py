"""
VanProperty Insights - Source Package

Holds the vanproperty application package: database layer, REST API and the
Vancouver open data importer.
"""
