"""Accounts domain - customer and admin authentication"""
