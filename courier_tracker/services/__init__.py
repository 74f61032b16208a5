"""
Services: position simulation, courier registry, directions and orders.
"""
