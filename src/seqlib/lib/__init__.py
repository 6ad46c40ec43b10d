"""
Shared low-level utilities: resources, protocols and file handling.
"""
