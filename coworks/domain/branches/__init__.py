"""Branches domain - coworking locations"""
