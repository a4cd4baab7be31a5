"""
Performance Tests - Query and Reconciliation Timing on Larger Sets.
"""
