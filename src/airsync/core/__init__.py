"""
Configuration and command line entry points.
"""
