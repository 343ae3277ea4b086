"""
Integration tests that drive the API through an in-process httpx client.
"""
