"""
Measurement records, result containers and aggregation.
"""
