"""
Unit tests: security helpers, permissions, two-factor challenges, email
rendering, logging and the admin command line.
"""
