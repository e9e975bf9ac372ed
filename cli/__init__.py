"""Operator commands for verifying a lead funnel deployment."""
