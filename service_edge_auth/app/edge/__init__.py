"""
Edge request handling: request model, cookies, pages, and the gate.
"""
