"""Domain layer for the Verum protocol engine.

Pure protocol logic and value types. Nothing in this package performs I/O.
"""
