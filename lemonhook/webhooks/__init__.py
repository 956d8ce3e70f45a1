"""Webhook inbound system.

Receives Lemon Squeezy webhooks. Each webhook is signature-verified
over its raw body, decoded, and projected onto a Firestore user record.
"""
