"""
Module 11D - Minimal API (FastAPI)

HTTP API for the SPV bridge:
- POST /deposits/reveal - Reveal a deposit
- GET /deposits/{txid}/{index} - Look up a deposit
- POST /sweeps - Submit a sweep proof
- GET /chain-state, GET /events - Read-only views
- GET /health - Health check

Usage:
    uvicorn api.app:app --reload
"""

__version__ = "0.1.0"
