"""
Ledger error taxonomy.

Every error is a caller error: deterministic for a given input and never
retried. Routers translate them with ``status_code``.
"""


class LedgerError(ValueError):
    status_code = 400


class InvalidSplitType(LedgerError):
    status_code = 400


class InvalidSplit(LedgerError):
    status_code = 400


class InvalidOperation(LedgerError):
    status_code = 400


class AccessDenied(LedgerError):
    status_code = 403


class NotFound(LedgerError):
    status_code = 404
