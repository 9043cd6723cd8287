"""
Onlypoly game server.
"""
