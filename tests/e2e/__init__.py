"""
End-to-end tests for logrelay.

These tests run complete workflows: loggers writing through their streams,
records crossing the relay to a terminal client, and log files being rolled
over and archived.
"""
