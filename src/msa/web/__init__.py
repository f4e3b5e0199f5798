"""Web package for the MSA dashboard.

This package contains the FastAPI application serving the control
surface, per-session state and the two chart outputs.

To start the web server from the CLI use:
    msa serve --port 8000 --reload
"""
