"""
Core exceptions and enumerations
"""
