"""PDF opening, compositing and page splitting with PyMuPDF."""
