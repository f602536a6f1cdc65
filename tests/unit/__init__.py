"""
Unit tests for calleen.

Test individual components in isolation (no sockets, no real sleeps):
- Retry strategies (ceilings, exponential formula, jitter bounds)
- Retry predicates and AND/OR combinators
- Retry engine (delay precedence, exhaustion, unwrapped non-retryable errors)
- Rate limit header parsing
- Error taxonomy, models, serializer, settings, logging
- Client (mocked transport)
"""
