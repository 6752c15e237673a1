"""Solace analytics engine - streaks, protection quota, badges, insights, triggers."""
