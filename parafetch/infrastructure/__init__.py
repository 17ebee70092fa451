"""
Cross-cutting infrastructure: logging, errors, retry policy and the
connectivity watchdog.
"""
