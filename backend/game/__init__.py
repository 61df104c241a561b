"""
backend.game — Candidate selection, round sessions and the leaderboard.
"""
