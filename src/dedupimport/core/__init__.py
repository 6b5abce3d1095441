"""
Core Package.

Contains the deduplication pipeline:
- Import collection and duplicate resolution
- Lexical scope model
- Declaration trimming, reference rewriting and import ordering
- The `DedupeEngine` driver
"""
