"""
Counter API - HTTP bridge between clients and the on-chain Counter contract.

Provides REST endpoints for:
- Reading the counter value
- Incrementing / decrementing (by one or by an amount)
- Health checks
"""

__version__ = "0.1.0"
