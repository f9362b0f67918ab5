"""Support domain - customer tickets and conversations"""
