"""
Refund domain services
"""
