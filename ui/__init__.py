"""
UI Module - User-facing surfaces for Reihtuag
"""
