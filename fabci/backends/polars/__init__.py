"""
Polars adapters for computing FAB intervals over area tables.
"""
