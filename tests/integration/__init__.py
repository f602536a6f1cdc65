"""
Integration tests for calleen.

Drive the full client stack (Client -> RetryEngine -> HttpxTransport ->
httpx.AsyncClient) against a scripted httpx.MockTransport server, with real
sleeps. Marked with @pytest.mark.integration.
"""
