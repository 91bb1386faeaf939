"""
depth_sim - Order book visualization and order impact simulation for crypto venues.

Architecture:
- datafeed/: Feed adapters, mock feed and the latest-snapshot store
- engine/: Pure book metrics and the order impact simulator
- ui/: Book ladder, depth chart and simulation history (Rich/Textual TUI)
"""

__version__ = "0.1.0"
