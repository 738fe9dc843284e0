"""Persistence-side collaborators for drained domain events."""
