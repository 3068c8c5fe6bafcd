"""Native library deployment and activation.

This module locates, extracts, installs and loads bundled shared libraries.
It keeps concurrent processes of the same build from corrupting installs.
"""
