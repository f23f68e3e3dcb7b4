"""hybrid-router - route LLM requests between local models and cloud APIs.

Modules:
    - routing: Simple, API-first and cost-aware routing strategies
    - ledger: Append-only spend ledger with monthly aggregation
    - providers: Model provider and GPU detector interfaces
    - config: YAML configuration with eager validation
    - cli: ``hybrid-router`` command line
"""

__version__ = "0.3.0"
