"""
Veterinary clinic backend: authentication, password recovery, audit trail
and staff user administration.
"""
