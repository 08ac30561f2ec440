"""Ingestion helpers.

All backend payloads that feed the field store are decoded and validated
here before any store mutation happens.
"""
