"""
Seed commands: admin bootstrap and sample portfolio content.

Run with `python -m seed --help` from the `api/` directory.
"""
