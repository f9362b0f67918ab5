"""Bookings domain - seat and meeting bookings and pricing"""
