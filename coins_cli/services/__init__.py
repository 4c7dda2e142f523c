"""
Service layer: HTTP clients, session handling and API access
"""
