"""lemonhook - Lemon Squeezy webhook gateway.

Verifies signed Lemon Squeezy webhooks and projects purchase and
subscription events onto Firestore user records.
"""
