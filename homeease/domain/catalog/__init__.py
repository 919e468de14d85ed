"""Service catalog and provider lookups"""
