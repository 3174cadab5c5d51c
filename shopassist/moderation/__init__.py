"""Comment moderation for product reviews.

The pipeline combines:
- Block-list: deterministic regional-discrimination terms, checked first
- Triage: LLM three-way classification (TOXIC / NEEDS_RESEARCH / SAFE)
- Research: one web search to explain ambiguous slang
- Final verdict: LLM judgment parsed into a strict ``{pass, reason}`` verdict

Background dispatch pushes the verdict to the store's feedback record.
"""
