"""fiscalhub: authorization and resilient data-access layer for the fiscal documents dashboard."""
