"""
HTTP API for exporter health and status
"""
