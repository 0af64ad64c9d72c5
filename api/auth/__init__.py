"""
Users, passwords and tokens.
"""
