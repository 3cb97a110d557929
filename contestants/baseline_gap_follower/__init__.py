"""Baseline gap-following agent."""
