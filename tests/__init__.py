"""
Test suite for the Permit Determination Engine.
"""
