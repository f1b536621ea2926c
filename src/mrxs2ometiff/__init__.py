"""mrxs2ometiff: whole slide image to pyramidal OME-TIFF converter."""

__version__ = "0.1.0"
