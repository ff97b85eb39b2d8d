"""
Experiments comparing the boosted tree trainer with library baselines.
"""
