"""Caseworker dashboard: REST API for voice care plan updates."""
