"""
Core utilities: constants, logging and Prometheus metrics
"""
