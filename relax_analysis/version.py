"""
Version information for the DC relaxation analysis toolkit.

This is the SINGLE SOURCE OF TRUTH for version information.
All other files should import from here.
"""

__version__ = '0.3.0'
__version_info__ = (0, 3, 0)
__release_date__ = '2026-10-19'

# Breaking changes in this version
__breaking_changes__ = [
    "MechanismParameters is now a frozen snapshot; use with_params() instead of attribute assignment",
    "Excluded mechanism parameters are tagged explicitly instead of being NaN",
]

# Human-readable version string
def get_version_string():
    """Return formatted version string."""
    return f"v{__version__} ({__release_date__})"

# For compatibility
VERSION = __version__
