"""HTTP API for docdiagrams."""
