"""Availability domain - time slots, seat search and maintenance blocks"""
