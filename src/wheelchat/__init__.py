"""Streaming customer-support chat for a custom wheel-building storefront."""
