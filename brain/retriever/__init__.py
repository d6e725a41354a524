"""
Retriever - answers questions from stored notes.

Pipeline:
1. Pick candidates (link notes for link questions, otherwise free-text search)
2. Keep open notes, cap the context size
3. Synthesize an answer with the LLM
"""

from .qa import QAEngine, is_url_question

__all__ = [
    "QAEngine",
    "is_url_question",
]
