"""
Command line tools: ``logrelay-relay`` and ``logrelay-client``.
"""
