"""Solace activity log - mood, journal and exercise entries."""
