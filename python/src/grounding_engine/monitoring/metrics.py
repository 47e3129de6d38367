"""
Prometheus Metrics for Grounding Validation

Exposes metrics for:
- Citations extracted and their validation outcomes
- External existence checks and URL liveness probes
- Evaluation pass/fail and score distribution
- Semantic per-unit classification and embedding fallbacks

Metrics live in the default registry; exporting them is up to the host
process.
"""

from prometheus_client import Counter, Histogram


# ============================================================================
# Citation Pipeline Metrics
# ============================================================================

citations_total = Counter(
    'grounding_citations_total',
    'Citations extracted from generated text',
    ['type']
)

citation_status_total = Counter(
    'grounding_citation_status_total',
    'Citation validation outcomes',
    ['status']
)

api_checks_total = Counter(
    'grounding_api_checks_total',
    'External existence checks by outcome',
    ['outcome']  # 'exists', 'not_found', 'error', 'parse_error'
)

url_probes_total = Counter(
    'grounding_url_probes_total',
    'URL liveness probes by outcome',
    ['outcome']  # 'accessible', 'broken', 'transport_error'
)

evaluations_total = Counter(
    'grounding_evaluations_total',
    'Citation grounding evaluations',
    ['result']  # 'pass' or 'fail'
)

overall_score = Histogram(
    'grounding_overall_score',
    'Overall citation grounding score',
    buckets=[0.1, 0.2, 0.3, 0.4, 0.5, 0.6, 0.7, 0.8, 0.9, 1.0]
)


# ============================================================================
# Semantic Pipeline Metrics
# ============================================================================

semantic_units_total = Counter(
    'semantic_units_total',
    'Sentences/claims classified by the semantic validator',
    ['status']
)

semantic_embedding_fallbacks_total = Counter(
    'semantic_embedding_fallbacks_total',
    'Retrievals that fell back to lexical-only after an embedding failure'
)

semantic_validations_total = Counter(
    'semantic_validations_total',
    'Semantic validations by kind and result',
    ['kind', 'result']  # kind: 'content' or 'thread'
)
