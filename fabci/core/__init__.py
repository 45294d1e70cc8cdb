"""
Core infrastructure shared across fabci: typed names, errors, solver
configuration and the ibis-backed audit ledger.
"""
