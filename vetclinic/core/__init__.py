"""
Cross-cutting services: token codec, permissions, request context and audit trail.
"""
