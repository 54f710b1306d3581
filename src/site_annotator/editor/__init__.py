"""Interactive annotation editor: coordinates, gestures, model and persistence."""
