"""
Read-only reports over the audit ledger.
"""
