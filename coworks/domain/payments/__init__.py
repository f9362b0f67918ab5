"""Payments domain - Razorpay checkout and payment records"""
