"""Savings challenge tracker.

A challenge runs for 200 calendar days. On day N the saver deposits N units,
so a fully funded challenge totals 20,100 units.
"""
