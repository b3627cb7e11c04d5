"""
accountkit Core Module

Core functionality for single-key smart accounts including:
- Address derivation and StrKey encoding
- Authorization payloads and verdicts
- Contract execution environment
- Account and factory contracts
"""

__all__ = []
