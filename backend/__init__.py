"""Application entry point and settings for the microcycle planner."""
