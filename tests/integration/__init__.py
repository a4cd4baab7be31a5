"""
Integration Tests - End-to-End Flows.

These tests wire the in-memory store, broadcaster, pipeline and live
view together, using MockOrderStore data where volume matters.
"""
