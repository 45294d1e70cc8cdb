"""
Problem-specific interval schemes.
"""
