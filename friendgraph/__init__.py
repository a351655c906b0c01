"""
Friend graph explorer: BFS connection paths and weighted friend suggestions.
"""
