"""
Shared helpers: YAML/env config, JSON logging, geo math and data types.
"""
