"""
Test suite for the Storefront Admin API.

Run all tests: pytest
Run unit tests only: pytest tests/unit/
Run specific file: pytest tests/unit/test_variant_reconciler.py -v
"""
