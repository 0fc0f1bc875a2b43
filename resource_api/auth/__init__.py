"""
Identity: session and password capabilities plus the account endpoints that
use them.
"""
