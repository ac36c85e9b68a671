"""
AssetSync: pull a remote asset bundle into a local project layout.

Clones a git repository into scratch space, merges its category folders
into the destination tree and cleans up after itself. Single assets can
be fetched directly over HTTP.
"""

__version__ = "0.1.0"
