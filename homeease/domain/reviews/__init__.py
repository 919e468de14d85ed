"""Review gate, provider ratings and moderation"""
