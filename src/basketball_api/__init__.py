"""
Basketball API service core: layered configuration, secret-safety
validation, supervised database connection and health reporting.
"""

__version__ = "1.0.0"
