"""
Engine Layer

Configuration, background stage scheduling and the chart coordinator.
"""
