"""
HTTP API for WalletScope reports (FastAPI).
"""
