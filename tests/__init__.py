# AHFC Test Suite
"""
Test suite including:
- Unit tests (core crypto, container codec)
- Security tests (tampering, wrong passwords, invalid inputs)
- Integration tests (CLI, audit events)

Run with: pytest
"""
