"""
Application layer for the microcycle planner.

This package contains:
- ports/: Protocol interfaces the planning services depend on
- exceptions: Error taxonomy shared by services and the HTTP layer
"""
