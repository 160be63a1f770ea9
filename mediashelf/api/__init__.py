"""
HTTP API for browsing, tagging, and uploading media.
"""
