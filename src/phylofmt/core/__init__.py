"""
Scanning primitives: character classes, alphabets and the record scanner.
"""
