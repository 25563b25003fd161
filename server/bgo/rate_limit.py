"""
B-Go Admin — Rate Limiter
Shared limiter instance for the account and export endpoints.
"""
from slowapi import Limiter
from slowapi.util import get_remote_address

limiter = Limiter(key_func=get_remote_address)
