"""
Grounding validation engine.

Decides whether citations and factual claims in LLM-generated text are
supported by evidence or known reference data, and produces an
explainable pass/fail score.

Two independent pipelines:
- Citation pipeline: extraction → reference/API/URL validation → claims → scoring
- Semantic pipeline: chunking → BM25/embedding index → hybrid retrieval →
  heuristics → per-unit classification → aggregate result
"""

__version__ = "0.1.0"
