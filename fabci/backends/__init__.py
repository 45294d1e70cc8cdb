"""
Optional dataframe backends.
"""
