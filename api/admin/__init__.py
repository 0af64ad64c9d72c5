"""
Admin dashboard: cross-collection stats, admin listings and user management.
"""
