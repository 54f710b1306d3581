"""Annotation rendering shared by the editor, the viewers and image export."""
