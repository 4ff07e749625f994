"""
Module 'csrf': tokens à usage unique émis par GET /csrf-token
et consommés par POST /create-checkout-session.
"""

from .store import CsrfTokenRecord, CsrfTokenStore
from .sweeper import run_sweeper, start_sweeper

__all__ = [
    "CsrfTokenRecord",
    "CsrfTokenStore",
    "run_sweeper",
    "start_sweeper",
]
