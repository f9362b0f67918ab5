"""Seating domain - seating types and seats"""
