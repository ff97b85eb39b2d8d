"""
Experiment helpers: a timing harness and plotting utilities.
"""
