"""
Chat-side glue: the transport-neutral message handler, the Discord transport
adapter and the py-cord cogs that feed events into it.
"""
