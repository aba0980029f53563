"""
Domain layer

Models, interfaces and exceptions shared by every other layer.
"""
