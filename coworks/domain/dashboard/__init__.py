"""Admin dashboard domain"""
