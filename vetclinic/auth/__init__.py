"""
Authentication module for the veterinary clinic system.

This module provides:
- Staff and owner credential sources
- Login and token validation
- Password recovery with single-use reset tokens
- The per-request authentication gate and role checks
"""
