"""
SPARC console test suites.

Importable as a package so page objects and the engine can be shared between
the unit tests, the live-console UI tests and `run_tests.py`.
"""
