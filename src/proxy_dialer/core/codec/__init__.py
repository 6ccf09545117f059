"""Pure encode/decode functions for proxy handshake frames.

Nothing in this package touches a socket; the clients in
``proxy_dialer.core.lib`` feed these functions the bytes they read.
"""
