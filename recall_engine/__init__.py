"""
recall-engine: spaced-repetition scheduling for vocabulary study.

Subpackages:
- recall_engine.fsrs: memory model, retrievability, SQL persistence
- recall_engine.session_builders: priority scoring and study sets
"""

__version__ = "0.1.0"
