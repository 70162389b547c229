"""
Couple Ledger - Source Package

Reconciliation and ledger engine for two people who share finances.

DESIGN PRINCIPLES:
1. Pure, deterministic calculators (same input → same output)
2. Records are normalized once, at the model boundary
3. Bad values degrade to a safe default; only unreadable records raise
4. Every correction applied to user data is logged
5. Persistence and presentation live outside this package
"""

__version__ = "1.0.0"
__author__ = "Couple Ledger Team"
