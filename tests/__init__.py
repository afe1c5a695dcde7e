"""
Tests for the bucketing package

This package contains tests for:
- Salt hashing and randomization primitives
- Expression tree parsing and validation
- Interpreter and parameter gatherer
- Entry points and result serialization
"""
