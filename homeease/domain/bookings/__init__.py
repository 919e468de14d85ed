"""Booking lifecycle: creation, status transitions and queries"""
