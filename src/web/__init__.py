"""HTTP API for TaxPilot AI."""
