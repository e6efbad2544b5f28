"""Marketplace business rules.

Pure state machines for visit negotiation and the contract lifecycle, plus the
role-based authorization context. Nothing here opens a database session.
"""
