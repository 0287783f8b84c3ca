"""pixscrub: mirror an image tree with every picture replaced by a placeholder."""

__version__ = "0.1.0"
