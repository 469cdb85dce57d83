"""
tests

Test suite for the canlog-decoder project.

This package contains unit and end-to-end tests for all components of the
project: the bitfield_decoder library, the shared common models, and the
canlog_cli application.

Subpackages:
    - canlog_cli: Tests for configuration, record I/O, processing, metrics and the CLI
"""
