"""
Integration Tests Package

Service and HTTP-level tests against a mock upstream.

TEST AXIOMS:
=============
1. No upstream failure escapes: the endpoint always answers 200
2. Empty batches are never cached
3. One refresh at a time, one archive fetch per gate window
"""
