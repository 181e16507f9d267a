"""Asset Indexer - Derived state for tokenization platform contract events."""

__version__ = "0.1.0"
