"""
Staff user administration.
"""
