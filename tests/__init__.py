"""
tmplforge test suite
====================

Test Modules
------------
- test_models.py: Tests for options and job/result records
- test_discovery.py: Tests for template discovery and naming
- test_compiler.py: Tests for single-template compilation
- test_registry.py: Tests for the live-worker registry
- test_pool.py: Tests for the bounded worker pool
- test_termination.py: Tests for signal-driven shutdown
- test_assembler.py: Tests for module rendering
- test_precompiler.py: End-to-end pipeline tests
- test_cli.py: Tests for the command-line interface

Running Tests
-------------
    # Run all tests
    pytest

    # Skip the slower subprocess-heavy tests
    pytest -m "not slow"

    # Run with coverage
    pytest --cov=src/tmplforge
"""
