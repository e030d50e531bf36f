"""
Core - configuration, auth, errors and logging.
"""
