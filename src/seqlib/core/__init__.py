"""
Alphabets and genetic codes.
"""
