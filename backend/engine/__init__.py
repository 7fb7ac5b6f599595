"""
Viewport engine.

Builds an immutable cluster snapshot per mapset, then drives per-view culling:
debounced recomputes, visible-set replacement and marker interaction.
"""
