"""quotewatch core: providers, fetch orchestration, history and indicators."""
