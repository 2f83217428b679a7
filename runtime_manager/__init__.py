"""
Runtime version manager.

This package is responsible for:
* Listing runtime builds published to the remote artifact bucket.
* Resolving a version requirement against the default, installed and remote versions.
* Downloading and extracting the build for the current OS into a versioned directory.
* Persisting the default runtime version.
"""

__version__ = "0.2.8"
