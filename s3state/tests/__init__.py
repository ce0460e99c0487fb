"""
Tests Module: Unit Tests

Test Coverage:
    - Core types and errors
    - Configuration and environment loading
    - In-memory and S3 object clients
    - Versioned and conditional record stores
    - Structured logging and the command line
"""
