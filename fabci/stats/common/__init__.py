"""
Generic building blocks: quantiles, spending functions, endpoint solver.
"""
