"""
HTTP request handlers (FastAPI).
"""
