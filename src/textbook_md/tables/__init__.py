"""Table segmentation, LLM-based normalization, and order-preserving reassembly.

Submodules:
  segment    -- Chunk model, text / table_candidate partitioning
  service    -- normalization service protocol, ServiceResult, Azure OpenAI client
  retry      -- bounded retry state machine with differentiated backoff
  cache      -- on-disk cache of normalized tables
  normalize  -- per-chunk normalization with content-preserving fallback
"""
