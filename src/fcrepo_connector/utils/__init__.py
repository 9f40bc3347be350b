"""Shared utilities: HTTP plumbing, content negotiation and secure logging."""
