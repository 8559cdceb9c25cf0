"""DocSnap: assisted capture of document photos for OCR."""

__version__ = "1.0.0"
