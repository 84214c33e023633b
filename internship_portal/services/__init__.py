"""
Services module - one service per collection, plus dashboard aggregation
and outbound email.
"""
