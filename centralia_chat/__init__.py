"""
Conversation layer: sessions, gates and the conversation engine.
"""
