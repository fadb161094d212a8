# -*- coding: utf-8 -*-
"""FitLedger — local nutrition ledger backend."""

__version__ = "0.1.0"
