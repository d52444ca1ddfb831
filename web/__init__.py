"""
Flask application exposing recorded blunders.
"""
